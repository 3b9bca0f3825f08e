"""Core app configuration, database, clock and hashing."""

from app.core.clock import Clock, SystemClock
from app.core.config import get_settings, settings
from app.core.database import get_db

__all__ = ["Clock", "SystemClock", "get_settings", "settings", "get_db"]
