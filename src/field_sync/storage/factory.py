"""Store factory: pick a backend from configuration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from field_sync.storage.base import LocalStore
from field_sync.storage.memory_store import InMemoryStore
from field_sync.storage.sqlite_store import SQLiteStore

if TYPE_CHECKING:
    from field_sync.utils.config import Config

logger = logging.getLogger(__name__)


async def create_store(config: Config) -> LocalStore:
    """Create and initialize the configured store backend.

    Unknown backends fall back to SQLite.
    """
    backend = config.storage_backend.lower()
    store: LocalStore
    if backend == "memory":
        store = InMemoryStore()
    else:
        if backend != "sqlite":
            logger.warning("Unknown storage backend %r, using sqlite", config.storage_backend)
        store = SQLiteStore(config.database_path)

    await store.initialize()
    logger.debug("Initialized %s store", type(store).__name__)
    return store
