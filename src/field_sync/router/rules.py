"""Declarative routing table for the cache router."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from field_sync.router.http import OPAQUE_STATUS, Request

DAY_SECONDS = 24 * 60 * 60
YEAR_SECONDS = 365 * DAY_SECONDS

OFFLINE_PAGES_CACHE = "offline-pages"
STATIC_ASSETS_CACHE = "static-assets"
IMAGES_CACHE = "images"
FONTS_CACHE = "fonts"

# Landing page served to navigations that cannot be answered any other way
OFFLINE_LANDING_PATH = "/offline"

# Seeded into the offline-pages partition at install time
PRECACHE_PATHS: tuple[str, ...] = (
    "/offline",
    "/offline/reporte-activos-fijos",
    "/offline/gestion-reportes",
    "/manifest.json",
    "/favicon.ico",
    "/icons/icon-192x192.png",
    "/icons/icon-512x512.png",
    "/logo-negativo.webp",
)

# Build-tool internals that are never intercepted (matched against the path)
EXCLUDE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^/manifest[^/]*\.js$"),
    re.compile(r"^/_next/static/.*\.hot-update\.js$"),
    re.compile(r"^/_next/static/development"),
)


class Strategy(StrEnum):
    """How a matched request is served."""

    NETWORK_ONLY = "NetworkOnly"
    NETWORK_FIRST = "NetworkFirst"
    CACHE_FIRST = "CacheFirst"


@dataclass(frozen=True)
class Expiration:
    """Eviction policy of a cache partition.

    Attributes:
        max_entries: Entry cap, least recently used evicted first (None = unbounded)
        max_age_seconds: Hard TTL (None = never expires)
    """

    max_entries: int | None = None
    max_age_seconds: int | None = None


class UrlPattern(Protocol):
    def matches(self, path: str) -> bool: ...


@dataclass(frozen=True)
class PathPrefix:
    """Matches host-relative paths starting with any of the prefixes."""

    prefixes: tuple[str, ...]

    def matches(self, path: str) -> bool:
        return path.startswith(self.prefixes)


@dataclass(frozen=True)
class Extensions:
    """Matches paths ending in one of the file extensions (case-insensitive)."""

    extensions: frozenset[str]

    def matches(self, path: str) -> bool:
        _, dot, ext = path.rpartition(".")
        return bool(dot) and "/" not in ext and ext.lower() in self.extensions


@dataclass(frozen=True)
class MatchAll:
    """Matches every path."""

    def matches(self, path: str) -> bool:
        return True


@dataclass(frozen=True)
class CachedRequestRule:
    """Routing policy for one class of request.

    Attributes:
        name: Label used in logs
        pattern: URL matcher over the request path
        strategy: How matching requests are served
        cache_name: Cache partition (None for NetworkOnly)
        expiration: Eviction policy of the partition
        network_timeout: Network bound in seconds (NetworkFirst only)
        cacheable_statuses: Statuses written to the cache; None means 2xx or opaque
        method: Only requests with this method match
    """

    name: str
    pattern: UrlPattern
    strategy: Strategy
    cache_name: str | None = None
    expiration: Expiration | None = None
    network_timeout: float | None = None
    cacheable_statuses: frozenset[int] | None = None
    method: str = "GET"

    def __post_init__(self) -> None:
        if self.strategy != Strategy.NETWORK_ONLY and not self.cache_name:
            raise ValueError(f"Rule {self.name!r} uses {self.strategy} without a cache_name")

    def matches(self, request: Request) -> bool:
        return request.method.upper() == self.method and self.pattern.matches(request.path)

    def is_cacheable(self, status: int) -> bool:
        if self.cacheable_statuses is not None:
            return status in self.cacheable_statuses
        return status == OPAQUE_STATUS or 200 <= status < 300


def build_default_rules(network_timeout: float = 3.0) -> tuple[CachedRequestRule, ...]:
    """The application's routing table, in priority order (first match wins)."""
    return (
        CachedRequestRule(
            name="offline-pages",
            pattern=PathPrefix(("/offline",)),
            strategy=Strategy.NETWORK_FIRST,
            cache_name=OFFLINE_PAGES_CACHE,
            expiration=Expiration(max_entries=20, max_age_seconds=7 * DAY_SECONDS),
            network_timeout=network_timeout,
            cacheable_statuses=frozenset({OPAQUE_STATUS, 200}),
        ),
        CachedRequestRule(
            name="static-assets",
            pattern=PathPrefix(("/_next/static/",)),
            strategy=Strategy.CACHE_FIRST,
            cache_name=STATIC_ASSETS_CACHE,
            expiration=Expiration(max_entries=200, max_age_seconds=YEAR_SECONDS),
        ),
        CachedRequestRule(
            name="images",
            pattern=Extensions(frozenset({"png", "jpg", "jpeg", "svg", "gif", "webp", "ico"})),
            strategy=Strategy.CACHE_FIRST,
            cache_name=IMAGES_CACHE,
            expiration=Expiration(max_entries=50, max_age_seconds=30 * DAY_SECONDS),
        ),
        CachedRequestRule(
            name="fonts",
            pattern=Extensions(frozenset({"woff", "woff2", "ttf", "eot"})),
            strategy=Strategy.CACHE_FIRST,
            cache_name=FONTS_CACHE,
            expiration=Expiration(max_entries=10, max_age_seconds=YEAR_SECONDS),
        ),
        CachedRequestRule(
            name="api",
            pattern=PathPrefix(("/api/", "/graphql")),
            strategy=Strategy.NETWORK_ONLY,
        ),
        CachedRequestRule(
            name="default",
            pattern=MatchAll(),
            strategy=Strategy.NETWORK_ONLY,
        ),
    )


def is_excluded(path: str) -> bool:
    """Whether a path belongs to the build-tool internals that are never intercepted."""
    return any(p.search(path) for p in EXCLUDE_PATTERNS)
