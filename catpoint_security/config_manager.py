"""Configuration management with JSON file persistence."""

import json
import os
from dataclasses import asdict, fields
from typing import Optional, Dict, Any, Callable, List

from .models.config import SystemConfig
from .config.defaults import DEFAULT_PATHS, REPOSITORY_BACKENDS
from .exceptions import ConfigurationError
from .utils import ensure_directory_exists
from .logging_config import get_logger

logger = get_logger("config_manager")

# Accepted value types per field; bool is rejected where a number is expected
_NUMBER = (int, float)
FIELD_TYPES = {
    "cat_confidence_threshold": _NUMBER,
    "isolate_listener_failures": (bool,),
    "repository_backend": (str,),
    "database_path": (str,),
    "fake_image_seed": (int, type(None)),
    "event_history_size": (int,),
    "log_level": (str,),
    "log_dir": (str,),
    "web_host": (str,),
    "web_port": (int,)
}


class ConfigManager:
    """Manages system configuration with file persistence and change callbacks."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or DEFAULT_PATHS["config_file"]
        self._config: Optional[SystemConfig] = None
        self._config_change_callbacks: List[Callable[[SystemConfig], None]] = []

        self.load_config()

    def load_config(self) -> SystemConfig:
        """Load configuration from file or create default."""
        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, 'r') as f:
                    config_dict = json.load(f)
                known = {f.name for f in fields(SystemConfig)}
                ignored = set(config_dict) - known
                if ignored:
                    logger.warning(f"Ignoring unknown config keys: {sorted(ignored)}")
                self._config = SystemConfig(**{k: v for k, v in config_dict.items() if k in known})
            except (json.JSONDecodeError, TypeError, AttributeError) as e:
                logger.error(f"Error loading config: {e}. Using defaults.")
                self._config = SystemConfig()
        else:
            self._config = SystemConfig()
            self.save_config()

        return self._config

    def save_config(self) -> None:
        """Save current configuration to file."""
        if self._config is None:
            return

        directory = os.path.dirname(self.config_path)
        if directory:
            ensure_directory_exists(directory)

        with open(self.config_path, 'w') as f:
            json.dump(asdict(self._config), f, indent=2)

    def get_config(self) -> SystemConfig:
        """Get current configuration."""
        if self._config is None:
            return self.load_config()
        return self._config

    def update_config(self, **kwargs) -> None:
        """Update configuration with new values. Unknown keys are ignored."""
        if self._config is None:
            self.load_config()

        for key, value in kwargs.items():
            if hasattr(self._config, key):
                setattr(self._config, key, value)
            else:
                logger.debug(f"Ignoring unknown config key: {key}")

        self.save_config()

        for callback in self._config_change_callbacks:
            try:
                callback(self._config)
            except Exception as e:
                logger.error(f"Error in config change callback: {e}")

    def validate_config(self) -> bool:
        """Validate current configuration."""
        return not self.get_validation_errors()

    def get_validation_errors(self) -> List[str]:
        """List every problem with the current configuration."""
        if self._config is None:
            return ["configuration not loaded"]

        config = self._config
        errors = self._get_type_errors(config)
        if errors:
            return errors

        if not 0.0 <= config.cat_confidence_threshold <= 100.0:
            errors.append("cat_confidence_threshold must be between 0 and 100")

        if config.repository_backend not in REPOSITORY_BACKENDS:
            errors.append(f"repository_backend must be one of {', '.join(REPOSITORY_BACKENDS)}")

        if config.repository_backend == "sqlite" and not config.database_path:
            errors.append("database_path is required for the sqlite backend")

        if config.event_history_size < 1:
            errors.append("event_history_size must be at least 1")

        if config.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append(f"log_level '{config.log_level}' is not a logging level")

        if not 1 <= config.web_port <= 65535:
            errors.append("web_port must be between 1 and 65535")

        return errors

    @staticmethod
    def _get_type_errors(config: SystemConfig) -> List[str]:
        errors = []
        for name, accepted in FIELD_TYPES.items():
            value = getattr(config, name)
            if isinstance(value, bool) and bool not in accepted:
                errors.append(f"{name} must not be a boolean")
            elif not isinstance(value, accepted):
                errors.append(f"{name} has invalid type {type(value).__name__}")
        return errors

    def require_valid_config(self) -> SystemConfig:
        """Return the configuration, raising if it is invalid."""
        errors = self.get_validation_errors()
        if errors:
            raise ConfigurationError("; ".join(errors))
        return self.get_config()

    def add_config_change_callback(self, callback: Callable[[SystemConfig], None]) -> None:
        """Register a callback to be called when config changes."""
        if callback not in self._config_change_callbacks:
            self._config_change_callbacks.append(callback)

    def remove_config_change_callback(self, callback: Callable[[SystemConfig], None]) -> None:
        """Unregister a config change callback."""
        if callback in self._config_change_callbacks:
            self._config_change_callbacks.remove(callback)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self.get_config())
