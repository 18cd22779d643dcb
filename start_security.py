#!/usr/bin/env python3
"""Entry point for the Catpoint security panel."""

import argparse
import logging
import os
import sys

from catpoint_security.config_manager import ConfigManager
from catpoint_security.exceptions import ConfigurationError
from catpoint_security.logging_config import get_logger, setup_logging
from catpoint_security.services.error_handler import ErrorHandler
from catpoint_security.services.image_service import FakeImageService
from catpoint_security.services.security_repository import create_repository
from catpoint_security.services.security_service import SecurityService
from catpoint_security.services.status_listeners import (
    LoggingStatusListener,
    StatusHistoryListener
)
from catpoint_security.web.app import CatpointWebApp


def build_web_app(config) -> CatpointWebApp:
    """Wire repository, image service, engine and listeners into the web API."""
    error_handler = ErrorHandler()
    security_service = SecurityService(
        create_repository(config),
        FakeImageService(config.fake_image_seed),
        error_handler=error_handler,
        confidence_threshold=config.cat_confidence_threshold,
        isolate_listener_failures=config.isolate_listener_failures
    )
    security_service.add_status_listener(LoggingStatusListener())

    return CatpointWebApp(
        security_service,
        StatusHistoryListener(config.event_history_size)
    )


def main(argv=None):
    """Main entry point for the security panel."""
    parser = argparse.ArgumentParser(description="Catpoint security panel")
    parser.add_argument("--config", default=None, help="Path to the JSON config file")
    args = parser.parse_args(argv)

    config_manager = ConfigManager(args.config)
    try:
        config = config_manager.require_valid_config()
    except ConfigurationError as e:
        # Log settings may be the invalid part, so report on the console only
        logging.basicConfig(level=logging.INFO,
                            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        get_logger("start_security").error(f"Invalid configuration: {e}")
        return 1

    setup_logging(config.log_level, config.log_dir)
    logger = get_logger("start_security")
    logger.info("Starting Catpoint security panel")
    logger.info(f"Python version: {sys.version}")
    logger.info(f"Working directory: {os.getcwd()}")

    web_app = build_web_app(config)

    try:
        web_app.run(host=config.web_host, port=config.web_port)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")

    logger.info("Catpoint security panel stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
