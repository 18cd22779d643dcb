"""Default configuration values and constants."""

from typing import Dict, Any

# Default system configuration
DEFAULT_CONFIG: Dict[str, Any] = {
    # Alarm engine settings
    "cat_confidence_threshold": 50.0,
    "isolate_listener_failures": True,

    # Repository settings
    "repository_backend": "memory",
    "database_path": "data/security.db",

    # Camera settings
    "fake_image_seed": None,
    "event_history_size": 50,

    # Logging settings
    "log_level": "INFO",
    "log_dir": "logs",

    # Web API settings
    "web_host": "127.0.0.1",
    "web_port": 5000
}

# System constants
SYSTEM_CONSTANTS = {
    "CAT_CONFIDENCE_THRESHOLD": 50.0,  # Percent, passed to the image service
    "MAX_EVENT_HISTORY": 1000,
    "MAX_UPLOAD_SIZE_MB": 16,
    "LOG_ROTATION_SIZE_MB": 10,
    "LOG_BACKUP_COUNT": 5
}

# File paths
DEFAULT_PATHS = {
    "config_file": "config.json"
}

# Placeholder camera frame used when no image is supplied
CAMERA_SETTINGS = {
    "resolution": (640, 480),
    "channels": 3
}

REPOSITORY_BACKENDS = ("memory", "sqlite")
