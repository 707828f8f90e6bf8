"""Bulk sync engine: refreshes the local replica from the remote list."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol

from field_sync.cache.query_cache import RESOURCES_FAMILY
from field_sync.core.replica import ReplicaRecord
from field_sync.core.sync_state import DEFAULT_THRESHOLD_HOURS, SyncState
from field_sync.errors import StoreError
from field_sync.storage.base import APP_CONFIG, REPLICA, LocalStore
from field_sync.utils.timeutils import Clock, from_millis, now_millis

if TYPE_CHECKING:
    from field_sync.cache.query_cache import QueryCache

logger = logging.getLogger(__name__)

# Key of the sync timestamp in the app_config collection
LAST_SYNC_KEY = "last_auto_sync"


class ResourceSource(Protocol):
    """Remote surface that returns the complete authoritative list."""

    async def list_resources(self, *, only_fixed_assets: bool = True) -> list[Any]: ...


class SyncMode(StrEnum):
    """Bookkeeping mode of a bulk sync (both fetch and replace everything)."""

    FULL = "full"
    INCREMENTAL = "incremental"


@dataclass(frozen=True)
class SyncOutcome:
    """Result of one bulk sync attempt.

    Attributes:
        mode: full when the replica was empty, incremental otherwise
        success: Whether the replica and timestamp were updated
        fetched: Records returned by the remote
        added: Identifiers new to the replica
        updated: Identifiers already present
        evicted: Identifiers dropped because the remote no longer lists them
        error: Failure reason when unsuccessful
        started_at: Epoch millis
        finished_at: Epoch millis
    """

    mode: SyncMode
    success: bool
    fetched: int = 0
    added: int = 0
    updated: int = 0
    evicted: int = 0
    error: str | None = None
    started_at: int = 0
    finished_at: int = 0

    @property
    def duration_ms(self) -> int:
        return max(0, self.finished_at - self.started_at)

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "success": self.success,
            "fetched": self.fetched,
            "added": self.added,
            "updated": self.updated,
            "evicted": self.evicted,
            "error": self.error,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "duration_ms": self.duration_ms,
        }


class BulkSyncEngine:
    """
    Replaces the replica with the remote authoritative list.

    At most one sync body runs at a time; a concurrent caller awaits the
    in-flight attempt and receives its outcome. Failures never propagate:
    they are logged and reported through ``SyncOutcome``, leaving the
    replica and the sync timestamp untouched.
    """

    def __init__(
        self,
        store: LocalStore,
        remote: ResourceSource,
        *,
        id_field: str = "resource_id",
        only_fixed_assets: bool = True,
        threshold_hours: float = DEFAULT_THRESHOLD_HOURS,
        query_cache: QueryCache | None = None,
        clock: Clock = now_millis,
    ) -> None:
        self._store = store
        self._remote = remote
        self._id_field = id_field
        self._only_fixed_assets = only_fixed_assets
        self._threshold_hours = threshold_hours
        self._query_cache = query_cache
        self._clock = clock
        self._state = SyncState()
        self._inflight: asyncio.Task[SyncOutcome] | None = None

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def is_syncing(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def load_state(self) -> SyncState:
        """Load the sync timestamp; any failure means "never synced"."""
        try:
            entry = await self._store.get(APP_CONFIG, LAST_SYNC_KEY)
            timestamp = int(entry["value"]) if entry else 0
        except (StoreError, KeyError, TypeError, ValueError) as e:
            logger.warning("Could not load last sync timestamp, assuming never synced: %s", e)
            timestamp = 0

        self._state = SyncState(last_sync_timestamp=timestamp)
        return self._state

    async def sync_all(self) -> SyncOutcome:
        """Run a bulk sync, or join the one already running."""
        task = self._inflight
        if task is None or task.done():
            task = asyncio.create_task(self._run())
            self._inflight = task
        else:
            logger.debug("Bulk sync already in progress, awaiting it")
        return await asyncio.shield(task)

    async def _run(self) -> SyncOutcome:
        started_at = self._clock()
        mode = SyncMode.FULL
        try:
            replica_size = await self._store.count(REPLICA)
            mode = SyncMode.FULL if replica_size == 0 else SyncMode.INCREMENTAL
            logger.info("Starting %s sync (replica has %d records)", mode, replica_size)

            raw = await self._remote.list_resources(only_fixed_assets=self._only_fixed_assets)
            records: dict[str, ReplicaRecord] = {}
            for item in raw:
                record = ReplicaRecord.from_remote(item, self._id_field)
                records[record.id] = record

            new_ids = set(records)
            if mode == SyncMode.INCREMENTAL:
                old_ids = {
                    str(value.get(self._id_field))
                    for value in await self._store.get_all(REPLICA)
                }
                added = len(new_ids - old_ids)
                updated = len(new_ids & old_ids)
                evicted = len(old_ids - new_ids)
            else:
                added, updated, evicted = len(new_ids), 0, 0

            # Full replacement in both modes; the counts above are bookkeeping only
            await self._store.replace_all(REPLICA, ((r.id, r.data) for r in records.values()))

            finished_at = self._clock()
            await self._save_state(finished_at)
        except Exception as e:
            finished_at = self._clock()
            logger.error("Bulk sync failed: %s", e, exc_info=True)
            return SyncOutcome(
                mode=mode,
                success=False,
                error=str(e) or type(e).__name__,
                started_at=started_at,
                finished_at=finished_at,
            )

        if self._query_cache is not None:
            self._query_cache.invalidate([RESOURCES_FAMILY])

        outcome = SyncOutcome(
            mode=mode,
            success=True,
            fetched=len(raw),
            added=added,
            updated=updated,
            evicted=evicted,
            started_at=started_at,
            finished_at=finished_at,
        )
        logger.info(
            "%s sync complete: %d records (%d new, %d updated, %d evicted) in %d ms",
            mode.capitalize(),
            len(records),
            added,
            updated,
            evicted,
            outcome.duration_ms,
        )
        logger.info(
            "Next automatic sync due at %s",
            from_millis(self._state.next_due_ms(self._threshold_hours)).isoformat(),
        )
        return outcome

    async def _save_state(self, timestamp: int) -> None:
        await self._store.put(
            APP_CONFIG,
            LAST_SYNC_KEY,
            {
                "key": LAST_SYNC_KEY,
                "value": timestamp,
                "updated_at": from_millis(timestamp).isoformat(),
            },
        )
        self._state = SyncState(last_sync_timestamp=timestamp)
