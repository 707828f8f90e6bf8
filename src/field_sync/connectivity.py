"""Connectivity signal: online/offline state plus a "became online" event."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import aiohttp

logger = logging.getLogger(__name__)

# Handlers may be plain callables or coroutine functions
OnlineHandler = Callable[[], Any]


class ConnectivitySignal:
    """
    Readable online flag with subscribable online transitions.

    The host application (browser bridge, OS hook, or an explicit probe)
    reports state through ``set_online``. Handlers run only on an
    offline -> online transition, each in its own background task, so
    reporting connectivity never waits for a sync. Nothing here polls.

    Usage:
        signal = ConnectivitySignal(online=False)
        unsubscribe = signal.on_online(service.check_and_sync_if_needed)
        await signal.set_online(True)   # handlers scheduled
        await signal.wait_idle()
        unsubscribe()
    """

    def __init__(
        self,
        online: bool = True,
        *,
        probe_url: str | None = None,
        probe_timeout: float = 5.0,
    ) -> None:
        self._online = online
        self._probe_url = probe_url
        self._probe_timeout = probe_timeout
        self._handlers: list[OnlineHandler] = []
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def is_online(self) -> bool:
        """Current connectivity as last reported."""
        return self._online

    def on_online(self, handler: OnlineHandler) -> Callable[[], None]:
        """
        Subscribe to offline -> online transitions.

        Returns:
            A callable that removes the subscription
        """
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    async def set_online(self, online: bool) -> None:
        """Record connectivity; fire handlers when connectivity is regained."""
        was_online = self._online
        self._online = online
        if online and not was_online:
            logger.info("Connectivity regained")
            self._dispatch()
        elif not online and was_online:
            logger.info("Connectivity lost")

    async def probe(self) -> bool:
        """Check reachability of the probe URL and update the state.

        Without a probe URL the current state is returned unchanged.
        """
        if not self._probe_url:
            return self._online

        timeout = aiohttp.ClientTimeout(total=self._probe_timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.head(self._probe_url, allow_redirects=True) as response:
                    reachable = response.status < 500
        except (aiohttp.ClientError, asyncio.TimeoutError):
            logger.debug("Connectivity probe to %s failed", self._probe_url, exc_info=True)
            reachable = False

        await self.set_online(reachable)
        return reachable

    @property
    def pending_handlers(self) -> int:
        """Number of handler runs still in flight."""
        return len(self._tasks)

    async def wait_idle(self) -> None:
        """Wait until every scheduled handler run has finished."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def close(self) -> None:
        """Cancel handler runs still in flight and wait for them to exit."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    def _dispatch(self) -> None:
        # Copy so handlers may unsubscribe themselves
        for handler in list(self._handlers):
            task = asyncio.create_task(self._run_handler(handler))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _run_handler(self, handler: OnlineHandler) -> None:
        try:
            result = handler()
            if asyncio.iscoroutine(result):
                await result
        except Exception as e:
            logger.warning("Connectivity handler error: %s", e, exc_info=True)
