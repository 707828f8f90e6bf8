"""In-memory store backend."""

from __future__ import annotations

import copy
from collections import defaultdict
from collections.abc import Collection, Iterable
from typing import Any

from field_sync.storage.base import LocalStore


class InMemoryStore(LocalStore):
    """Dict-based store for development and testing.

    Data is lost when the process exits. Every method completes without
    awaiting, so each call is atomic on the event loop.
    """

    def __init__(self) -> None:
        self._data: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)

    async def get(self, collection: str, key: str) -> dict[str, Any] | None:
        value = self._data[collection].get(key)
        return copy.deepcopy(value) if value is not None else None

    async def get_all(self, collection: str) -> list[dict[str, Any]]:
        return [copy.deepcopy(v) for v in self._data[collection].values()]

    async def count(self, collection: str) -> int:
        return len(self._data[collection])

    async def collections(self) -> list[str]:
        return sorted(name for name, entries in self._data.items() if entries)

    async def put(self, collection: str, key: str, value: dict[str, Any]) -> None:
        self._data[collection][key] = copy.deepcopy(value)

    async def delete(self, collection: str, key: str) -> bool:
        return self._data[collection].pop(key, None) is not None

    async def clear(self, collection: str) -> int:
        removed = len(self._data[collection])
        self._data.pop(collection, None)
        return removed

    async def replace_all(
        self, collection: str, items: Iterable[tuple[str, dict[str, Any]]]
    ) -> int:
        # Build the new content first so a failing iterator leaves the old one intact
        fresh = {key: copy.deepcopy(value) for key, value in items}
        self._data[collection] = fresh
        return len(fresh)

    async def compare_and_set(
        self,
        collection: str,
        key: str,
        field: str,
        expected: Collection[Any],
        updates: dict[str, Any],
    ) -> bool:
        current = self._data[collection].get(key)
        if current is None or current.get(field) not in expected:
            return False
        current.update(copy.deepcopy(updates))
        return True
