"""Auto-sync service: runs the trigger policy on discrete events."""

from __future__ import annotations

import logging
from collections.abc import Callable

from field_sync.connectivity import ConnectivitySignal
from field_sync.core.sync_state import DEFAULT_THRESHOLD_HOURS, SyncStatusSnapshot
from field_sync.errors import StoreError
from field_sync.storage.base import REPLICA, LocalStore
from field_sync.sync.bulk_sync import BulkSyncEngine, SyncOutcome
from field_sync.sync.policy import should_sync
from field_sync.utils.timeutils import Clock, now_millis

logger = logging.getLogger(__name__)


class AutoSyncService:
    """
    Keeps the replica fresh without a polling timer.

    The policy is evaluated on three events only: service start,
    connectivity regained, and before replica reads
    (``check_and_sync_if_needed``). Owned by the composition root; there
    is no module-level instance.
    """

    def __init__(
        self,
        engine: BulkSyncEngine,
        store: LocalStore,
        connectivity: ConnectivitySignal,
        *,
        threshold_hours: float = DEFAULT_THRESHOLD_HOURS,
        clock: Clock = now_millis,
    ) -> None:
        self._engine = engine
        self._store = store
        self._connectivity = connectivity
        self._threshold_hours = threshold_hours
        self._clock = clock
        self._initialized = False
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def engine(self) -> BulkSyncEngine:
        return self._engine

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def start(self) -> SyncOutcome | None:
        """Load state, subscribe to connectivity, and run the start-up check."""
        if self._initialized:
            return None

        await self._engine.load_state()
        self._unsubscribe = self._connectivity.on_online(self._on_online)
        self._initialized = True
        logger.info(
            "Auto-sync started (last sync: %s)",
            self._engine.state.last_sync_at.isoformat() if self._engine.state.has_synced else "never",
        )
        return await self.check_and_sync_if_needed()

    async def stop(self) -> None:
        """Unsubscribe from connectivity events."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._initialized = False

    async def check_and_sync_if_needed(self) -> SyncOutcome | None:
        """
        Sync if the policy says so. Safe to call before every read.

        Returns:
            The sync outcome, or None when no sync was needed
        """
        if not self._initialized:
            await self._engine.load_state()

        try:
            replica_size = await self._store.count(REPLICA)
        except StoreError as e:
            logger.warning("Could not read replica size: %s", e)
            return None

        hours = self._engine.state.hours_since_last_sync(self._clock())
        if not should_sync(
            self._connectivity.is_online, replica_size, hours, self._threshold_hours
        ):
            logger.debug(
                "No sync needed (online=%s, replica=%d, %.1fh since last sync)",
                self._connectivity.is_online,
                replica_size,
                hours,
            )
            return None

        return await self._engine.sync_all()

    async def force_sync(self) -> SyncOutcome:
        """Manual refresh: bypasses the policy, still joins an in-flight sync."""
        logger.info("Forced sync requested")
        return await self._engine.sync_all()

    def get_status(self) -> SyncStatusSnapshot:
        state = self._engine.state
        now = self._clock()
        return SyncStatusSnapshot(
            last_sync=state.last_sync_timestamp,
            last_sync_at=state.last_sync_at,
            hours_since_last_sync=state.hours_since_last_sync(now),
            needs_sync=state.needs_sync(now, self._threshold_hours),
            is_online=self._connectivity.is_online,
            is_initialized=self._initialized,
            is_syncing=self._engine.is_syncing,
        )

    async def _on_online(self) -> None:
        logger.info("Back online, checking whether a sync is needed")
        await self.check_and_sync_if_needed()
