"""Tests for the auto-sync service."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from conftest import FakeClock, make_resources

from field_sync.connectivity import ConnectivitySignal
from field_sync.errors import RemoteError
from field_sync.storage.base import REPLICA
from field_sync.storage.memory_store import InMemoryStore
from field_sync.sync.bulk_sync import BulkSyncEngine
from field_sync.sync.service import AutoSyncService


@pytest.fixture
def service(
    store: InMemoryStore, remote: AsyncMock, connectivity: ConnectivitySignal, clock: FakeClock
) -> AutoSyncService:
    engine = BulkSyncEngine(store, remote, clock=clock)
    return AutoSyncService(engine, store, connectivity, clock=clock)


async def seed_replica(store: InMemoryStore, *ids: str) -> None:
    for item in make_resources(*ids):
        await store.put(REPLICA, item["resource_id"], item)


class TestStart:
    """Start-up loads state and runs the policy once."""

    async def test_start_syncs_empty_replica(
        self, service: AutoSyncService, remote: AsyncMock
    ) -> None:
        outcome = await service.start()

        assert outcome is not None and outcome.success
        assert service.is_initialized is True
        remote.list_resources.assert_awaited_once()

    async def test_start_is_idempotent(self, service: AutoSyncService, remote: AsyncMock) -> None:
        await service.start()
        assert await service.start() is None
        assert remote.list_resources.await_count == 1

    async def test_start_offline_does_not_sync(
        self, service: AutoSyncService, remote: AsyncMock, connectivity: ConnectivitySignal
    ) -> None:
        await connectivity.set_online(False)
        assert await service.start() is None
        remote.list_resources.assert_not_awaited()


class TestCheckAndSyncIfNeeded:
    """The time gate across elapsed hours."""

    async def test_recent_sync_skips(
        self, service: AutoSyncService, store: InMemoryStore, remote: AsyncMock, clock: FakeClock
    ) -> None:
        await service.start()
        clock.advance(hours=23)

        assert await service.check_and_sync_if_needed() is None
        assert remote.list_resources.await_count == 1

    async def test_stale_sync_runs(
        self, service: AutoSyncService, remote: AsyncMock, clock: FakeClock
    ) -> None:
        await service.start()
        clock.advance(hours=24)

        outcome = await service.check_and_sync_if_needed()

        assert outcome is not None and outcome.success
        assert remote.list_resources.await_count == 2

    async def test_cleared_replica_syncs_despite_recent_timestamp(
        self, service: AutoSyncService, store: InMemoryStore, remote: AsyncMock, clock: FakeClock
    ) -> None:
        await service.start()
        await store.clear(REPLICA)
        clock.advance(hours=1)

        assert await service.check_and_sync_if_needed() is not None
        assert remote.list_resources.await_count == 2

    async def test_works_before_start(
        self, service: AutoSyncService, remote: AsyncMock
    ) -> None:
        outcome = await service.check_and_sync_if_needed()
        assert outcome is not None
        remote.list_resources.assert_awaited_once()


class TestStatus:
    """get_status snapshots."""

    async def test_after_success_needs_no_sync(
        self, service: AutoSyncService, clock: FakeClock
    ) -> None:
        await service.start()
        status = service.get_status()

        assert status.last_sync == clock.now
        assert status.hours_since_last_sync == pytest.approx(0.0)
        assert status.needs_sync is False
        assert status.is_online is True
        assert status.is_initialized is True
        assert status.is_syncing is False

    async def test_after_25_hours_needs_sync(
        self, service: AutoSyncService, clock: FakeClock
    ) -> None:
        await service.start()
        clock.advance(hours=25)

        status = service.get_status()

        assert status.hours_since_last_sync == pytest.approx(25.0)
        assert status.needs_sync is True

    async def test_never_synced(self, service: AutoSyncService) -> None:
        status = service.get_status()
        assert status.last_sync == 0
        assert status.last_sync_at is None
        assert status.needs_sync is True
        assert status.is_initialized is False

    async def test_failed_sync_keeps_needing_sync(
        self, service: AutoSyncService, remote: AsyncMock
    ) -> None:
        remote.list_resources.side_effect = RemoteError("down")
        outcome = await service.start()
        assert outcome is not None and outcome.success is False
        assert service.get_status().needs_sync is True


class TestForceSync:
    """Manual refresh bypasses the policy."""

    async def test_force_runs_when_fresh(
        self, service: AutoSyncService, store: InMemoryStore, remote: AsyncMock
    ) -> None:
        await service.start()
        outcome = await service.force_sync()
        assert outcome.success
        assert remote.list_resources.await_count == 2

    async def test_force_skips_connectivity_precheck(
        self, service: AutoSyncService, remote: AsyncMock, connectivity: ConnectivitySignal
    ) -> None:
        await connectivity.set_online(False)
        await service.force_sync()
        remote.list_resources.assert_awaited_once()


class TestConnectivityTrigger:
    """Regaining connectivity evaluates the policy."""

    async def test_online_transition_syncs_when_due(
        self,
        service: AutoSyncService,
        store: InMemoryStore,
        remote: AsyncMock,
        connectivity: ConnectivitySignal,
        clock: FakeClock,
    ) -> None:
        await seed_replica(store, "1")
        await connectivity.set_online(False)
        await service.start()
        remote.list_resources.assert_not_awaited()

        await connectivity.set_online(True)
        await connectivity.wait_idle()

        remote.list_resources.assert_awaited_once()

    async def test_online_transition_skips_when_fresh(
        self,
        service: AutoSyncService,
        remote: AsyncMock,
        connectivity: ConnectivitySignal,
    ) -> None:
        await service.start()
        await connectivity.set_online(False)
        await connectivity.set_online(True)
        await connectivity.wait_idle()
        assert remote.list_resources.await_count == 1

    async def test_stop_unsubscribes(
        self,
        service: AutoSyncService,
        store: InMemoryStore,
        remote: AsyncMock,
        connectivity: ConnectivitySignal,
    ) -> None:
        await connectivity.set_online(False)
        await service.start()
        await service.stop()

        await connectivity.set_online(True)

        remote.list_resources.assert_not_awaited()
