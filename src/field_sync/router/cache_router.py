"""Cache router: serves intercepted requests from network, cache, or neither."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from urllib.parse import urljoin

from field_sync.errors import FetchError
from field_sync.router.cache_storage import ResponseCache
from field_sync.router.http import Fetcher, Request, Response
from field_sync.router.rules import (
    OFFLINE_LANDING_PATH,
    OFFLINE_PAGES_CACHE,
    PRECACHE_PATHS,
    CachedRequestRule,
    Strategy,
    build_default_rules,
    is_excluded,
)
from field_sync.storage.base import CACHE_PREFIX, LocalStore
from field_sync.utils.timeutils import Clock, now_millis

logger = logging.getLogger(__name__)


class CacheRouter:
    """
    Applies an ordered rule table to intercepted requests.

    Dispatch order for a request:
    1. Non-GET requests and excluded build internals go to the network untouched.
    2. Precached URLs are served from the precache partition, unless a
       NetworkFirst rule owns them (that rule then refreshes the entry).
    3. The first matching rule decides the strategy.

    Usage:
        router = CacheRouter(store, fetcher, origin="http://localhost:3000")
        await router.install()
        await router.activate()
        response = await router.handle(Request("http://localhost:3000/offline", mode="navigate"))
    """

    def __init__(
        self,
        store: LocalStore,
        fetch: Fetcher,
        *,
        origin: str,
        rules: Iterable[CachedRequestRule] | None = None,
        precache_paths: Iterable[str] = PRECACHE_PATHS,
        precache_cache: str = OFFLINE_PAGES_CACHE,
        offline_landing_path: str = OFFLINE_LANDING_PATH,
        clock: Clock = now_millis,
    ) -> None:
        self._store = store
        self._fetch = fetch
        self._origin = origin.rstrip("/") + "/"
        self._rules = tuple(rules) if rules is not None else build_default_rules()

        self._caches: dict[str, ResponseCache] = {}
        for rule in self._rules:
            if rule.cache_name and rule.cache_name not in self._caches:
                self._caches[rule.cache_name] = ResponseCache(
                    store, rule.cache_name, rule.expiration, clock=clock
                )
        if precache_cache not in self._caches:
            self._caches[precache_cache] = ResponseCache(store, precache_cache, clock=clock)

        self._precache = self._caches[precache_cache]
        self._precache_urls = tuple(self.absolute_url(p) for p in precache_paths)
        self._offline_landing_url = self.absolute_url(offline_landing_path)

    @property
    def rules(self) -> tuple[CachedRequestRule, ...]:
        return self._rules

    @property
    def precache_urls(self) -> tuple[str, ...]:
        return self._precache_urls

    def cache(self, name: str) -> ResponseCache:
        """Get a cache partition by name."""
        return self._caches[name]

    def absolute_url(self, path: str) -> str:
        return urljoin(self._origin, path.lstrip("/"))

    def resolve(self, request: Request) -> CachedRequestRule | None:
        """First rule matching the request, or None when the router does not intercept it."""
        if not request.is_get or is_excluded(request.path):
            return None
        for rule in self._rules:
            if rule.matches(request):
                return rule
        return None

    # ========== Lifecycle ==========

    async def install(self) -> int:
        """
        Seed the precache partition with the fixed page and asset list.

        Individual failures are logged and skipped.

        Returns:
            Number of URLs cached
        """
        cached = 0
        for url in self._precache_urls:
            try:
                response = await self._fetch(Request(url))
            except FetchError as e:
                logger.warning("Precache fetch failed for %s: %s", url, e)
                continue
            if not response.ok:
                logger.warning("Precache skipped %s: status %d", url, response.status)
                continue
            await self._precache.put(url, response, pinned=True)
            cached += 1

        logger.info("Precached %d/%d URLs", cached, len(self._precache_urls))
        return cached

    async def activate(self) -> list[str]:
        """
        Delete cache partitions not named by the current rule table.

        Returns:
            Names of the removed partitions
        """
        removed: list[str] = []
        for collection in await self._store.collections():
            if not collection.startswith(CACHE_PREFIX):
                continue
            name = collection[len(CACHE_PREFIX) :]
            if name not in self._caches:
                await self._store.clear(collection)
                removed.append(name)
                logger.info("Deleted stale cache partition %s", name)
        return removed

    async def stats(self) -> dict[str, int]:
        """Entry count per cache partition."""
        return {name: await cache.size() for name, cache in self._caches.items()}

    # ========== Dispatch ==========

    async def handle(self, request: Request) -> Response:
        """Serve an intercepted request.

        Raises:
            FetchError: Only for requests the router does not intercept
        """
        rule = self.resolve(request)
        if rule is None:
            logger.debug("Bypass %s %s", request.method, request.url)
            return await self._fetch(request)

        if request.url in self._precache_urls and rule.strategy != Strategy.NETWORK_FIRST:
            cached = await self._precache.match(request.url)
            if cached is not None:
                logger.debug("Precache hit %s", request.url)
                return cached

        logger.debug("%s -> %s (%s)", request.url, rule.name, rule.strategy)
        if rule.strategy == Strategy.NETWORK_FIRST:
            return await self._network_first(request, rule)
        if rule.strategy == Strategy.CACHE_FIRST:
            return await self._cache_first(request, rule)
        return await self._network_only(request)

    async def _network_only(self, request: Request) -> Response:
        try:
            return await self._fetch(request)
        except FetchError as e:
            logger.debug("Network-only fetch failed for %s: %s", request.url, e)
            return Response.service_unavailable("This page requires an internet connection.")

    async def _network_first(self, request: Request, rule: CachedRequestRule) -> Response:
        assert rule.cache_name is not None
        cache = self._caches[rule.cache_name]

        try:
            if rule.network_timeout is not None:
                response = await asyncio.wait_for(self._fetch(request), rule.network_timeout)
            else:
                response = await self._fetch(request)
        except (FetchError, asyncio.TimeoutError) as e:
            logger.debug("Network failed for %s, trying cache: %s", request.url, e)
        else:
            if rule.is_cacheable(response.status):
                await cache.put(request.url, response)
            return response

        cached = await cache.match(request.url)
        if cached is not None:
            return cached

        if request.is_navigation:
            landing = await self._precache.match(self._offline_landing_url)
            if landing is None and self._precache is not cache:
                landing = await cache.match(self._offline_landing_url)
            if landing is not None:
                return landing.with_source("fallback")

        return Response.service_unavailable()

    async def _cache_first(self, request: Request, rule: CachedRequestRule) -> Response:
        assert rule.cache_name is not None
        cache = self._caches[rule.cache_name]

        cached = await cache.match(request.url)
        if cached is not None:
            return cached

        try:
            response = await self._fetch(request)
        except FetchError as e:
            logger.debug("Cache miss and network failed for %s: %s", request.url, e)
            return Response.service_unavailable()

        if rule.is_cacheable(response.status):
            await cache.put(request.url, response)
        return response
