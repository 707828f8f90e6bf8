"""Response cache partitions persisted in the local store.

Each partition is one ``cache:<name>`` collection keyed by request URL.
Entries carry the time they were stored (for the TTL) and the time they
were last served (for least-recently-used eviction). Pinned entries are
precached content and are never evicted or expired.
"""

from __future__ import annotations

import base64
import logging
from typing import Any

from field_sync.router.http import Response
from field_sync.router.rules import Expiration
from field_sync.storage.base import CACHE_PREFIX, LocalStore
from field_sync.utils.timeutils import Clock, now_millis

logger = logging.getLogger(__name__)


class ResponseCache:
    """One named, independently evicted cache partition."""

    def __init__(
        self,
        store: LocalStore,
        name: str,
        expiration: Expiration | None = None,
        *,
        clock: Clock = now_millis,
    ) -> None:
        self._store = store
        self._name = name
        self._expiration = expiration or Expiration()
        self._clock = clock

    @property
    def name(self) -> str:
        return self._name

    @property
    def collection(self) -> str:
        return CACHE_PREFIX + self._name

    async def match(self, url: str) -> Response | None:
        """Return the cached response for a URL, or None.

        Expired entries are deleted on access. A hit refreshes the entry's
        position in the eviction order.
        """
        entry = await self._store.get(self.collection, url)
        if entry is None:
            return None

        now = self._clock()
        if self._is_expired(entry, now):
            logger.debug("Expired %s in %s", url, self._name)
            await self._store.delete(self.collection, url)
            return None

        await self._store.put(self.collection, url, {**entry, "last_access": now})
        return _entry_to_response(entry)

    async def put(self, url: str, response: Response, *, pinned: bool = False) -> None:
        """Store a response and apply the partition's eviction policy."""
        now = self._clock()
        if not pinned:
            # A runtime refresh of a precached URL keeps it pinned
            existing = await self._store.get(self.collection, url)
            pinned = bool(existing and existing.get("pinned"))

        await self._store.put(
            self.collection,
            url,
            {
                "url": url,
                "status": response.status,
                "headers": dict(response.headers),
                "body": base64.b64encode(response.body).decode("ascii"),
                "stored_at": now,
                "last_access": now,
                "pinned": pinned,
            },
        )
        await self.enforce()

    async def delete(self, url: str) -> bool:
        return await self._store.delete(self.collection, url)

    async def keys(self) -> list[str]:
        return [entry["url"] for entry in await self._store.get_all(self.collection)]

    async def size(self) -> int:
        return await self._store.count(self.collection)

    async def clear(self) -> int:
        return await self._store.clear(self.collection)

    async def enforce(self) -> int:
        """Drop expired entries, then the least recently used beyond the cap.

        Returns:
            Number of entries evicted
        """
        max_entries = self._expiration.max_entries
        if max_entries is None and self._expiration.max_age_seconds is None:
            return 0

        now = self._clock()
        entries = await self._store.get_all(self.collection)
        doomed = [e["url"] for e in entries if self._is_expired(e, now)]

        live = [e for e in entries if not e.get("pinned") and e["url"] not in doomed]
        if max_entries is not None and len(live) > max_entries:
            live.sort(key=lambda e: e.get("last_access", e.get("stored_at", 0)))
            doomed.extend(e["url"] for e in live[: len(live) - max_entries])

        for url in doomed:
            await self._store.delete(self.collection, url)
        if doomed:
            logger.debug("Evicted %d entries from %s", len(doomed), self._name)
        return len(doomed)

    def _is_expired(self, entry: dict[str, Any], now: int) -> bool:
        max_age = self._expiration.max_age_seconds
        if max_age is None or entry.get("pinned"):
            return False
        return now - int(entry.get("stored_at", 0)) > max_age * 1000


def _entry_to_response(entry: dict[str, Any]) -> Response:
    return Response(
        status=int(entry["status"]),
        headers=dict(entry.get("headers") or {}),
        body=base64.b64decode(entry.get("body", "")),
        source="cache",
    )
