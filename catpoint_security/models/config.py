"""Configuration data models."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class SystemConfig:
    """System configuration settings."""
    # Alarm engine settings
    cat_confidence_threshold: float = 50.0
    isolate_listener_failures: bool = True

    # Repository settings
    repository_backend: str = "memory"  # memory, sqlite
    database_path: str = "data/security.db"

    # Camera settings
    fake_image_seed: Optional[int] = None
    event_history_size: int = 50

    # Logging settings
    log_level: str = "INFO"
    log_dir: str = "logs"

    # Web API settings
    web_host: str = "127.0.0.1"
    web_port: int = 5000
