"""Exceptions raised by the Catpoint security system."""


class CatpointError(Exception):
    """Base class for all Catpoint errors."""


class ImageLoadError(CatpointError):
    """Raised when camera image data cannot be decoded."""


class ConfigurationError(CatpointError):
    """Raised when the system is started with an invalid configuration."""
