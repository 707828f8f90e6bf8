"""Tests for the application lifecycle."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from field_sync.app import FieldSyncApp
from field_sync.connectivity import ConnectivitySignal
from field_sync.errors import FetchError
from field_sync.router.http import Request, Response
from field_sync.router.rules import OFFLINE_PAGES_CACHE, PRECACHE_PATHS
from field_sync.storage.memory_store import InMemoryStore
from field_sync.utils.config import Config

ORIGIN = "http://app.test"


class SwitchableNetwork:
    """Answers every URL with its path until switched offline."""

    def __init__(self) -> None:
        self.offline = False

    async def __call__(self, request: Request) -> Response:
        if self.offline:
            raise FetchError(f"Fetch failed for {request.url}: offline")
        return Response(status=200, headers={"Content-Type": "text/html"}, body=request.path.encode())


@pytest.fixture
def network() -> SwitchableNetwork:
    return SwitchableNetwork()


@pytest.fixture
def field_app(
    store: InMemoryStore, remote: AsyncMock, network: SwitchableNetwork
) -> FieldSyncApp:
    config = Config(storage_backend="memory", origin=ORIGIN)
    return FieldSyncApp(config, store, remote, ConnectivitySignal(online=True), network)


class TestStart:
    """What start() leaves behind."""

    async def test_precached_page_served_offline_on_first_load(
        self, field_app: FieldSyncApp, network: SwitchableNetwork
    ) -> None:
        await field_app.start()
        network.offline = True

        response = await field_app.router.handle(
            Request(ORIGIN + "/offline/gestion-reportes", mode="navigate")
        )

        assert response.status == 200
        assert response.source == "cache"
        assert response.body == b"/offline/gestion-reportes"
        stats = await field_app.router.stats()
        assert stats[OFFLINE_PAGES_CACHE] == len(PRECACHE_PATHS)

    async def test_start_offline_still_starts(
        self, field_app: FieldSyncApp, network: SwitchableNetwork
    ) -> None:
        network.offline = True

        await field_app.start()

        assert field_app.sync_service.is_initialized is True
        assert (await field_app.router.stats())[OFFLINE_PAGES_CACHE] == 0

    async def test_precache_can_be_skipped(self, field_app: FieldSyncApp) -> None:
        await field_app.start(auto_sync=False, precache=False)
        assert (await field_app.router.stats())[OFFLINE_PAGES_CACHE] == 0


class TestClose:
    async def test_close_cancels_connectivity_handlers(self, field_app: FieldSyncApp) -> None:
        await field_app.connectivity.set_online(False)
        field_app.connectivity.on_online(lambda: asyncio.Event().wait())
        await field_app.connectivity.set_online(True)

        await field_app.close()

        assert field_app.connectivity.pending_handlers == 0
