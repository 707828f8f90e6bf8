"""Tests for the replica read path."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from conftest import FakeClock, make_resources

from field_sync.cache.query_cache import QueryCache
from field_sync.connectivity import ConnectivitySignal
from field_sync.replica import ReplicaReader
from field_sync.storage.base import REPLICA
from field_sync.storage.memory_store import InMemoryStore
from field_sync.sync.bulk_sync import BulkSyncEngine
from field_sync.sync.service import AutoSyncService


@pytest.fixture
def query_cache() -> QueryCache:
    return QueryCache()


@pytest.fixture
def reader(
    store: InMemoryStore,
    remote: AsyncMock,
    connectivity: ConnectivitySignal,
    clock: FakeClock,
    query_cache: QueryCache,
) -> ReplicaReader:
    engine = BulkSyncEngine(store, remote, clock=clock, query_cache=query_cache)
    service = AutoSyncService(engine, store, connectivity, clock=clock)
    return ReplicaReader(store, service, query_cache)


class TestListResources:
    """Search, pagination and the read-triggered sync."""

    async def test_first_read_syncs_empty_replica(
        self, reader: ReplicaReader, remote: AsyncMock
    ) -> None:
        page = await reader.list_resources()

        remote.list_resources.assert_awaited_once()
        assert page.total == 3
        assert [r["resource_id"] for r in page.resources] == ["1", "2", "3"]

    async def test_offline_empty_replica_returns_empty_page(
        self, reader: ReplicaReader, remote: AsyncMock, connectivity: ConnectivitySignal
    ) -> None:
        await connectivity.set_online(False)

        page = await reader.list_resources()

        remote.list_resources.assert_not_awaited()
        assert page.total == 0
        assert page.pages == 0
        assert page.resources == []

    async def test_search_is_case_insensitive(self, reader: ReplicaReader) -> None:
        page = await reader.list_resources("resource 2")
        assert [r["resource_id"] for r in page.resources] == ["2"]

    async def test_pagination(
        self, reader: ReplicaReader, store: InMemoryStore, remote: AsyncMock
    ) -> None:
        remote.list_resources.return_value = make_resources(*[str(i) for i in range(5)])

        page = await reader.list_resources(page=2, items_per_page=2)

        assert page.to_dict()["info"] == {"page": 2, "pages": 3, "items_per_page": 2, "total": 5}
        assert [r["resource_id"] for r in page.resources] == ["2", "3"]

    async def test_repeated_query_is_cached(
        self, reader: ReplicaReader, store: InMemoryStore
    ) -> None:
        first = await reader.list_resources("af")
        await store.put(REPLICA, "9", {"resource_id": "9", "code": "AF-9"})

        assert await reader.list_resources("AF") is first

    async def test_sync_invalidates_cached_pages(
        self, reader: ReplicaReader, remote: AsyncMock, clock: FakeClock
    ) -> None:
        await reader.list_resources()
        remote.list_resources.return_value = make_resources("1", "2", "3", "4")
        clock.advance(hours=25)

        page = await reader.list_resources()

        assert page.total == 4


class TestLookups:
    async def test_get_resource(self, reader: ReplicaReader) -> None:
        await reader.list_resources()
        resource = await reader.get_resource("2")
        assert resource is not None
        assert resource["name"] == "Resource 2"
        assert await reader.get_resource("missing") is None

    async def test_count(self, reader: ReplicaReader, store: InMemoryStore) -> None:
        assert await reader.count() == 0
        await store.put(REPLICA, "x", {"resource_id": "x"})
        assert await reader.count() == 1
