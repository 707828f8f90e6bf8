"""Replica synchronization: trigger policy, bulk sync engine, and service."""

from field_sync.sync.bulk_sync import BulkSyncEngine, SyncMode, SyncOutcome
from field_sync.sync.policy import should_sync
from field_sync.sync.service import AutoSyncService

__all__ = [
    "AutoSyncService",
    "BulkSyncEngine",
    "SyncMode",
    "SyncOutcome",
    "should_sync",
]
