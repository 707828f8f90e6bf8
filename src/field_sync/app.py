"""Composition root: builds and wires every field-sync component."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from field_sync.cache.query_cache import QueryCache
from field_sync.connectivity import ConnectivitySignal
from field_sync.remote.client import RemoteClient
from field_sync.replica import ReplicaReader
from field_sync.reports.queue import MutationQueue
from field_sync.router.cache_router import CacheRouter
from field_sync.router.http import AiohttpFetcher, Fetcher
from field_sync.router.rules import build_default_rules
from field_sync.storage.base import LocalStore
from field_sync.storage.factory import create_store
from field_sync.sync.bulk_sync import BulkSyncEngine
from field_sync.sync.service import AutoSyncService
from field_sync.utils.config import Config, get_config
from field_sync.utils.timeutils import Clock, now_millis

logger = logging.getLogger(__name__)


class FieldSyncApp:
    """
    Owns the store, the remote client and every service built on them.

    Usage:
        async with await FieldSyncApp.create(config) as app:
            await app.start()
            page = await app.reader.list_resources("drill")
    """

    def __init__(
        self,
        config: Config,
        store: LocalStore,
        remote: RemoteClient,
        connectivity: ConnectivitySignal,
        fetcher: Fetcher,
        *,
        clock: Clock = now_millis,
    ) -> None:
        self.config = config
        self.store = store
        self.remote = remote
        self.connectivity = connectivity
        self.fetcher = fetcher
        self.query_cache = QueryCache()

        self.engine = BulkSyncEngine(
            store,
            remote,
            id_field=config.id_field,
            only_fixed_assets=config.fixed_assets_only,
            threshold_hours=config.sync_threshold_hours,
            query_cache=self.query_cache,
            clock=clock,
        )
        self.sync_service = AutoSyncService(
            self.engine,
            store,
            connectivity,
            threshold_hours=config.sync_threshold_hours,
            clock=clock,
        )
        self.queue = MutationQueue(
            store,
            remote,
            connectivity,
            query_cache=self.query_cache,
            claim_lease=config.request_timeout * 2,
        )
        self.reader = ReplicaReader(
            store, self.sync_service, self.query_cache, id_field=config.id_field
        )
        self.router = CacheRouter(
            store,
            fetcher,
            origin=config.origin,
            rules=build_default_rules(config.network_timeout),
            clock=clock,
        )
        self._closers: list[Callable[[], Awaitable[Any]]] = []

    @classmethod
    async def create(
        cls,
        config: Config | None = None,
        *,
        store: LocalStore | None = None,
        remote: RemoteClient | None = None,
        connectivity: ConnectivitySignal | None = None,
        fetcher: Fetcher | None = None,
        clock: Clock = now_millis,
    ) -> FieldSyncApp:
        """Build an app, creating whatever collaborators were not given.

        Collaborators created here are closed by ``close()``; injected ones
        stay owned by the caller.
        """
        config = config or get_config()
        closers: list[Callable[[], Awaitable[Any]]] = []

        if store is None:
            store = await create_store(config)
            closers.append(store.close)
        if remote is None:
            remote = RemoteClient(
                config.remote_url, timeout=config.request_timeout, api_key=config.api_key
            )
            closers.append(remote.close)
        if fetcher is None:
            aiohttp_fetcher = AiohttpFetcher(timeout=config.request_timeout)
            closers.append(aiohttp_fetcher.close)
            fetcher = aiohttp_fetcher
        if connectivity is None:
            connectivity = ConnectivitySignal(online=True, probe_url=config.probe_url)

        app = cls(config, store, remote, connectivity, fetcher, clock=clock)
        app._closers = closers
        return app

    async def start(
        self, *, auto_sync: bool = True, recover: bool = True, precache: bool = True
    ) -> None:
        """
        Bring the app up.

        Args:
            auto_sync: Subscribe to connectivity and run the start-up sync check
            recover: Release submissions whose claim outlived the lease
            precache: Seed the offline pages partition before cleaning stale caches
        """
        if recover:
            await self.queue.recover_interrupted()
        if precache:
            await self.router.install()
        await self.router.activate()
        await self.connectivity.probe()
        if auto_sync:
            await self.sync_service.start()

    async def close(self) -> None:
        await self.sync_service.stop()
        await self.connectivity.close()
        # Close in reverse creation order; the store goes last
        for closer in reversed(self._closers):
            await closer()
        self._closers = []

    async def __aenter__(self) -> FieldSyncApp:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
