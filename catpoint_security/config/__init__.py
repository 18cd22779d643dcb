"""Configuration components for the Catpoint security system."""

from .defaults import (
    DEFAULT_CONFIG,
    SYSTEM_CONSTANTS,
    DEFAULT_PATHS,
    CAMERA_SETTINGS,
    REPOSITORY_BACKENDS
)

__all__ = [
    'DEFAULT_CONFIG',
    'SYSTEM_CONSTANTS',
    'DEFAULT_PATHS',
    'CAMERA_SETTINGS',
    'REPOSITORY_BACKENDS'
]
