"""Utility functions for the Catpoint security system."""

import os
from typing import Optional, Type, TypeVar
from enum import Enum

E = TypeVar("E", bound=Enum)


def ensure_directory_exists(path: str) -> None:
    """Ensure a directory exists, create if it doesn't."""
    if not os.path.exists(path):
        os.makedirs(path, exist_ok=True)


def parse_enum(enum_class: Type[E], value) -> Optional[E]:
    """Resolve an enum member from a member or its name, or None if unknown."""
    if isinstance(value, enum_class):
        return value
    if isinstance(value, str):
        try:
            return enum_class[value.strip().upper()]
        except KeyError:
            return None
    return None
