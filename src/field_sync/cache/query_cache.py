"""In-process read-query cache with family-based invalidation.

Keys are tuples whose first element names a query family, e.g.
``("fixed-asset-resources", "drill", 1, 10)``. Writers invalidate whole
families so subsequent reads observe fresh data.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Hashable, Iterable
from typing import Any

logger = logging.getLogger(__name__)

QueryKey = tuple[Hashable, ...]

# Families touched by a submitted report
REPORT_FAMILIES: tuple[str, ...] = (
    "fixed-asset-reports",
    "reports-paginated",
    "reports-by-user",
    "report-stats",
    "fixed-assets",
    "fixed-asset-resources",
)
RESOURCES_FAMILY = "fixed-asset-resources"


class QueryCache:
    """Simple TTL cache for read-query results.

    Single-writer async use; no locking.

    Attributes:
        _default_ttl: Time-to-live in seconds when ``put`` gives none.
        _max_entries: Maximum entries before the oldest is evicted.
    """

    def __init__(
        self,
        default_ttl: float = 60.0,
        max_entries: int = 256,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_ttl = default_ttl
        self._max_entries = max_entries
        self._clock = clock
        # key -> (stored_at, ttl, value)
        self._cache: dict[QueryKey, tuple[float, float, Any]] = {}
        self._hits = 0
        self._misses = 0

    def get(self, key: QueryKey) -> Any | None:
        """Cached value, or None on miss or expiry."""
        entry = self._cache.get(key)
        if entry is None:
            self._misses += 1
            return None

        stored_at, ttl, value = entry
        if self._clock() - stored_at > ttl:
            del self._cache[key]
            self._misses += 1
            return None

        self._hits += 1
        return value

    def put(self, key: QueryKey, value: Any, ttl: float | None = None) -> None:
        if key not in self._cache and len(self._cache) >= self._max_entries:
            self._evict_oldest()
        self._cache[key] = (self._clock(), ttl if ttl is not None else self._default_ttl, value)

    def invalidate(self, families: Iterable[str] | None = None) -> int:
        """Drop entries of the given families, or everything when None.

        Returns:
            Number of entries removed
        """
        if families is None:
            removed = len(self._cache)
            self._cache.clear()
            return removed

        wanted = set(families)
        doomed = [k for k in self._cache if k and k[0] in wanted]
        for key in doomed:
            del self._cache[key]
        if doomed:
            logger.debug("Invalidated %d cached queries in %s", len(doomed), sorted(wanted))
        return len(doomed)

    @property
    def size(self) -> int:
        return len(self._cache)

    @property
    def hit_rate(self) -> float:
        """Cache hit rate as a fraction (0.0-1.0)."""
        total = self._hits + self._misses
        return self._hits / total if total > 0 else 0.0

    def _evict_oldest(self) -> None:
        if not self._cache:
            return
        oldest_key = min(self._cache, key=lambda k: self._cache[k][0])
        del self._cache[oldest_key]
