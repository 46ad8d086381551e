"""Core app configuration and database."""

from hearth.core.config import get_settings, settings
from hearth.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
