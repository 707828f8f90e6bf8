"""Abstract base class for the durable local store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Collection, Iterable
from typing import Any

# Logical collections used by field-sync
REPLICA = "replica"
REPORTS = "reports"
APP_CONFIG = "app_config"
CACHE_PREFIX = "cache:"


class LocalStore(ABC):
    """
    Abstract interface for the durable key-value store.

    Values are JSON-compatible dicts grouped into named collections.
    Implementations must make ``replace_all`` and ``compare_and_set``
    atomic with respect to other writers of the same store.
    """

    async def initialize(self) -> None:  # noqa: B027
        """Open connections and create schema. No-op by default."""

    async def close(self) -> None:  # noqa: B027
        """Release resources. No-op by default."""

    async def __aenter__(self) -> LocalStore:
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ========== Reads ==========

    @abstractmethod
    async def get(self, collection: str, key: str) -> dict[str, Any] | None:
        """
        Get one value by key.

        Returns:
            The stored value, or None if absent
        """
        ...

    @abstractmethod
    async def get_all(self, collection: str) -> list[dict[str, Any]]:
        """Get every value in a collection, in insertion order."""
        ...

    @abstractmethod
    async def count(self, collection: str) -> int:
        """Number of entries in a collection."""
        ...

    @abstractmethod
    async def collections(self) -> list[str]:
        """Names of all non-empty collections."""
        ...

    # ========== Writes ==========

    @abstractmethod
    async def put(self, collection: str, key: str, value: dict[str, Any]) -> None:
        """Insert or replace a value (upsert)."""
        ...

    @abstractmethod
    async def delete(self, collection: str, key: str) -> bool:
        """Delete a value. Returns True if something was removed."""
        ...

    @abstractmethod
    async def clear(self, collection: str) -> int:
        """Remove a whole collection. Returns the number of entries removed."""
        ...

    @abstractmethod
    async def replace_all(
        self, collection: str, items: Iterable[tuple[str, dict[str, Any]]]
    ) -> int:
        """
        Atomically replace a collection's entire content.

        Either every item is written and all previous entries are gone,
        or the collection is left exactly as it was.

        Returns:
            Number of entries written
        """
        ...

    @abstractmethod
    async def compare_and_set(
        self,
        collection: str,
        key: str,
        field: str,
        expected: Collection[Any],
        updates: dict[str, Any],
    ) -> bool:
        """
        Merge ``updates`` into a value only if ``value[field]`` is in ``expected``.

        Returns:
            True if the value existed, matched, and was updated
        """
        ...
