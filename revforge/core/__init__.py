"""Core app configuration, database and security primitives."""

from revforge.core.config import Settings, get_settings
from revforge.core.database import get_db

__all__ = ["Settings", "get_settings", "get_db"]
