"""
Postgres engine and sessions for the project store.

The engine is built on first use from ``DB_*`` settings, so processes that
run with the in-memory store never touch the database driver.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from portal.db.config import get_db_settings
from portal.utils.logger import logger


class Base(DeclarativeBase):
    """Declarative base shared by every portal table."""


_sessions: async_sessionmaker[AsyncSession] | None = None


def _build_engine() -> AsyncEngine:
    settings = get_db_settings()
    return create_async_engine(
        settings.get_async_url(),
        echo=settings.echo,
        pool_pre_ping=True,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
    )


def get_async_session_local() -> async_sessionmaker[AsyncSession]:
    """Return the session factory, creating the engine on first call."""
    global _sessions
    if _sessions is None:
        _sessions = async_sessionmaker(
            _build_engine(), expire_on_commit=False, autoflush=False
        )
    return _sessions


@asynccontextmanager
async def open_session() -> AsyncIterator[AsyncSession]:
    """Session for one unit of work; closed on exit, never committed here."""
    async with get_async_session_local()() as session:
        yield session


async def close_db() -> None:
    """Dispose of the engine on shutdown. A no-op when it was never created."""
    global _sessions
    if _sessions is None:
        return
    engine = _sessions.kw["bind"]
    _sessions = None
    await engine.dispose()
    logger.info("Database connections closed")
