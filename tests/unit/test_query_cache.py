"""Tests for the read-query cache."""

from __future__ import annotations

from field_sync.cache.query_cache import REPORT_FAMILIES, RESOURCES_FAMILY, QueryCache


class FakeMonotonic:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class TestQueryCache:
    """TTL, capacity and family invalidation."""

    def test_put_and_get(self) -> None:
        cache = QueryCache()
        cache.put(("reports-paginated", 1), [1, 2])
        assert cache.get(("reports-paginated", 1)) == [1, 2]

    def test_miss_returns_none(self) -> None:
        assert QueryCache().get(("nothing",)) is None

    def test_entry_expires_after_ttl(self) -> None:
        clock = FakeMonotonic()
        cache = QueryCache(default_ttl=60.0, clock=clock)
        cache.put((RESOURCES_FAMILY, ""), "v")

        clock.now += 60.5

        assert cache.get((RESOURCES_FAMILY, "")) is None
        assert cache.size == 0

    def test_per_entry_ttl(self) -> None:
        clock = FakeMonotonic()
        cache = QueryCache(default_ttl=1.0, clock=clock)
        cache.put(("a",), "long", ttl=100.0)
        clock.now += 50
        assert cache.get(("a",)) == "long"

    def test_capacity_evicts_oldest(self) -> None:
        clock = FakeMonotonic()
        cache = QueryCache(max_entries=2, clock=clock)
        cache.put(("a",), 1)
        clock.now += 1
        cache.put(("b",), 2)
        clock.now += 1
        cache.put(("c",), 3)

        assert cache.get(("a",)) is None
        assert cache.get(("c",)) == 3

    def test_invalidate_families(self) -> None:
        cache = QueryCache()
        cache.put(("fixed-asset-reports", 1), "x")
        cache.put(("report-stats",), "y")
        cache.put(("other",), "z")

        assert cache.invalidate(REPORT_FAMILIES) == 2
        assert cache.get(("other",)) == "z"

    def test_invalidate_all(self) -> None:
        cache = QueryCache()
        cache.put(("a",), 1)
        cache.put(("b",), 2)
        assert cache.invalidate() == 2
        assert cache.size == 0

    def test_hit_rate(self) -> None:
        cache = QueryCache()
        assert cache.hit_rate == 0.0
        cache.put(("a",), 1)
        cache.get(("a",))
        cache.get(("b",))
        assert cache.hit_rate == 0.5
