"""Core modules - config, database, logging"""

from .config import settings, get_settings, Settings
from .database import get_engine, get_session_factory, get_db, close_db
from .logging_config import configure_logging

__all__ = [
    "settings",
    "get_settings",
    "Settings",
    "get_engine",
    "get_session_factory",
    "get_db",
    "close_db",
    "configure_logging",
]
