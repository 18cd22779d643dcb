"""Web control API for the Catpoint security system."""

from .app import CatpointWebApp, create_app

__all__ = ['CatpointWebApp', 'create_app']
