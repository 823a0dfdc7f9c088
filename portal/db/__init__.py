"""Database layer for PostgreSQL operations."""

from portal.db.config import DatabaseSettings, get_db_settings
from portal.db.database import Base, close_db, get_async_session_local, open_session

__all__ = [
    "Base",
    "close_db",
    "get_async_session_local",
    "open_session",
    "DatabaseSettings",
    "get_db_settings",
]
