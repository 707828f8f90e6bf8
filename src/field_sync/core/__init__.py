"""Domain models for field-sync."""

from field_sync.core.mutation import (
    Attachment,
    MutationStatus,
    QueuedMutation,
    ReportItem,
    ReportPayload,
)
from field_sync.core.replica import ReplicaRecord
from field_sync.core.sync_state import SyncState, SyncStatusSnapshot

__all__ = [
    "Attachment",
    "MutationStatus",
    "QueuedMutation",
    "ReportItem",
    "ReportPayload",
    "ReplicaRecord",
    "SyncState",
    "SyncStatusSnapshot",
]
