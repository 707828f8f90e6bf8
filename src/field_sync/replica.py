"""Read path over the local replica."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from field_sync.cache.query_cache import RESOURCES_FAMILY, QueryCache
from field_sync.core.replica import ReplicaRecord
from field_sync.storage.base import REPLICA, LocalStore

if TYPE_CHECKING:
    from field_sync.sync.service import AutoSyncService

logger = logging.getLogger(__name__)

RESOURCES_TTL_SECONDS = 60.0


@dataclass(frozen=True)
class ResourcePage:
    """One page of replica records."""

    page: int
    pages: int
    items_per_page: int
    total: int
    resources: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "info": {
                "page": self.page,
                "pages": self.pages,
                "items_per_page": self.items_per_page,
                "total": self.total,
            },
            "resources": self.resources,
        }


class ReplicaReader:
    """Serves replica queries, running the sync check before each read."""

    def __init__(
        self,
        store: LocalStore,
        sync_service: AutoSyncService,
        query_cache: QueryCache,
        *,
        id_field: str = "resource_id",
    ) -> None:
        self._store = store
        self._sync_service = sync_service
        self._query_cache = query_cache
        self._id_field = id_field

    async def list_resources(
        self,
        search_term: str = "",
        page: int = 1,
        items_per_page: int = 50,
    ) -> ResourcePage:
        """Paginated, searchable view of the replica."""
        page = max(1, page)
        items_per_page = max(1, items_per_page)

        await self._sync_service.check_and_sync_if_needed()

        key = (RESOURCES_FAMILY, search_term.strip().lower(), page, items_per_page)
        cached = self._query_cache.get(key)
        if cached is not None:
            return cached

        records = [
            ReplicaRecord(id=str(data.get(self._id_field, "")), data=data)
            for data in await self._store.get_all(REPLICA)
        ]
        matching = [r.data for r in records if r.matches(search_term.strip())]

        total = len(matching)
        start = (page - 1) * items_per_page
        result = ResourcePage(
            page=page,
            pages=math.ceil(total / items_per_page) if total else 0,
            items_per_page=items_per_page,
            total=total,
            resources=matching[start : start + items_per_page],
        )
        self._query_cache.put(key, result, ttl=RESOURCES_TTL_SECONDS)
        logger.debug("Replica query %r page %d: %d/%d", search_term, page, len(result.resources), total)
        return result

    async def get_resource(self, resource_id: str) -> dict[str, Any] | None:
        return await self._store.get(REPLICA, resource_id)

    async def count(self) -> int:
        """Number of records in the replica (no sync check)."""
        return await self._store.count(REPLICA)
