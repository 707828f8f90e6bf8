"""Durable local store backends for field-sync."""

from field_sync.storage.base import APP_CONFIG, CACHE_PREFIX, REPLICA, REPORTS, LocalStore
from field_sync.storage.factory import create_store
from field_sync.storage.memory_store import InMemoryStore
from field_sync.storage.sqlite_store import SQLiteStore

__all__ = [
    "APP_CONFIG",
    "CACHE_PREFIX",
    "REPLICA",
    "REPORTS",
    "LocalStore",
    "InMemoryStore",
    "SQLiteStore",
    "create_store",
]
