"""Replica records: rows of the locally cached reference dataset."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from field_sync.errors import RemoteResponseError


@dataclass(frozen=True)
class ReplicaRecord:
    """One resource from the remote authoritative list.

    Attributes:
        id: Stable remote identifier (the replica key)
        data: The record exactly as the remote returned it
    """

    id: str
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_remote(cls, raw: Any, id_field: str) -> ReplicaRecord:
        """Build a record from a remote list item.

        Raises:
            RemoteResponseError: If the item is not an object or lacks the id field
        """
        if not isinstance(raw, dict):
            raise RemoteResponseError(f"Expected an object in resource list, got {type(raw).__name__}")
        record_id = raw.get(id_field)
        if record_id is None or record_id == "":
            raise RemoteResponseError(f"Resource is missing identifier field '{id_field}'")
        return cls(id=str(record_id), data=dict(raw))

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def matches(self, search_term: str) -> bool:
        """Case-insensitive match of a search term against string fields."""
        if not search_term:
            return True
        needle = search_term.lower()
        return any(isinstance(v, str) and needle in v.lower() for v in self.data.values())
