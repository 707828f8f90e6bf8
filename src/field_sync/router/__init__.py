"""Cache router for intercepted network requests."""

from field_sync.router.cache_router import CacheRouter
from field_sync.router.cache_storage import ResponseCache
from field_sync.router.http import AiohttpFetcher, Fetcher, Request, Response
from field_sync.router.rules import (
    PRECACHE_PATHS,
    CachedRequestRule,
    Expiration,
    Extensions,
    MatchAll,
    PathPrefix,
    Strategy,
    build_default_rules,
)

__all__ = [
    "AiohttpFetcher",
    "CacheRouter",
    "CachedRequestRule",
    "Expiration",
    "Extensions",
    "Fetcher",
    "MatchAll",
    "PRECACHE_PATHS",
    "PathPrefix",
    "Request",
    "Response",
    "ResponseCache",
    "Strategy",
    "build_default_rules",
]
