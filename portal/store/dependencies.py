"""
FastAPI dependencies for the project store.

The backend is chosen by ``STORE_BACKEND``: ``postgres`` opens a session per
request, ``memory`` shares one process-wide in-memory store.
"""

from collections.abc import AsyncGenerator

from portal.config import StoreBackend, get_app_settings
from portal.db.database import open_session
from portal.store.base import ProjectStore
from portal.store.memory import InMemoryProjectStore
from portal.store.postgres import PostgresProjectStore
from portal.utils.logger import logger

_memory_store: InMemoryProjectStore | None = None

def get_memory_store() -> InMemoryProjectStore:
    """Get or create the shared in-memory store."""
    global _memory_store
    if _memory_store is None:
        logger.info("Using in-memory project store")
        _memory_store = InMemoryProjectStore()
    return _memory_store

def reset_memory_store() -> None:
    """Drop the shared in-memory store (used by tests)."""
    global _memory_store
    _memory_store = None

async def get_project_store() -> AsyncGenerator[ProjectStore, None]:
    """
    FastAPI dependency for getting the configured project store.

    Yields:
        ProjectStore: Store instance for the current request
    """
    if get_app_settings().store_backend == StoreBackend.MEMORY:
        yield get_memory_store()
        return

    async with open_session() as session:
        yield PostgresProjectStore(session)
