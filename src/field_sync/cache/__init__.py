"""Read-query cache."""

from field_sync.cache.query_cache import REPORT_FAMILIES, RESOURCES_FAMILY, QueryCache

__all__ = ["QueryCache", "REPORT_FAMILIES", "RESOURCES_FAMILY"]
