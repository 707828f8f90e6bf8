"""Synchronization health state."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from field_sync.utils.timeutils import MILLIS_PER_HOUR, from_millis, hours_between

DEFAULT_THRESHOLD_HOURS = 24.0


@dataclass(frozen=True)
class SyncState:
    """Tracks when the replica was last refreshed successfully.

    Attributes:
        last_sync_timestamp: Epoch millis of the last successful bulk sync (0 = never)
    """

    last_sync_timestamp: int = 0

    @property
    def has_synced(self) -> bool:
        return self.last_sync_timestamp > 0

    @property
    def last_sync_at(self) -> datetime | None:
        return from_millis(self.last_sync_timestamp) if self.has_synced else None

    def hours_since_last_sync(self, now_ms: int) -> float:
        return hours_between(self.last_sync_timestamp, now_ms)

    def needs_sync(self, now_ms: int, threshold_hours: float = DEFAULT_THRESHOLD_HOURS) -> bool:
        return self.hours_since_last_sync(now_ms) >= threshold_hours

    def next_due_ms(self, threshold_hours: float = DEFAULT_THRESHOLD_HOURS) -> int:
        """Epoch millis at which the time gate opens again."""
        return self.last_sync_timestamp + int(threshold_hours * MILLIS_PER_HOUR)


@dataclass(frozen=True)
class SyncStatusSnapshot:
    """Read-only view of the sync service for the UI layer."""

    last_sync: int
    last_sync_at: datetime | None
    hours_since_last_sync: float
    needs_sync: bool
    is_online: bool
    is_initialized: bool
    is_syncing: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "last_sync": self.last_sync,
            "last_sync_at": self.last_sync_at.isoformat() if self.last_sync_at else None,
            "hours_since_last_sync": self.hours_since_last_sync,
            "needs_sync": self.needs_sync,
            "is_online": self.is_online,
            "is_initialized": self.is_initialized,
            "is_syncing": self.is_syncing,
        }
