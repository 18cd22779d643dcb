"""
Catpoint Security System

A simulated home-security panel: door, window and motion sensors, an
arming mode, and a camera whose frames are checked for cats. The alarm
engine decides when the panel escalates to an alarm.
"""

__version__ = "1.0.0"
__author__ = "Catpoint Security System"

from .config_manager import ConfigManager
from .models import (
    AlarmStatus,
    ArmingStatus,
    SensorType,
    Sensor,
    SystemConfig
)
from .services import (
    SecurityRepositoryInterface,
    ImageServiceInterface,
    StatusListenerInterface,
    SecurityService
)
from .exceptions import CatpointError, ImageLoadError, ConfigurationError

__all__ = [
    # Core management
    'ConfigManager',

    # Data models
    'AlarmStatus',
    'ArmingStatus',
    'SensorType',
    'Sensor',
    'SystemConfig',

    # Services
    'SecurityRepositoryInterface',
    'ImageServiceInterface',
    'StatusListenerInterface',
    'SecurityService',

    # Errors
    'CatpointError',
    'ImageLoadError',
    'ConfigurationError'
]
