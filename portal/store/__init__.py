"""Project store: the single client services use for persistence."""

from portal.store.base import ProjectStore, StoreError
from portal.store.memory import InMemoryProjectStore

__all__ = ["InMemoryProjectStore", "ProjectStore", "StoreError"]
