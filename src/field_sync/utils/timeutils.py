"""Time helpers: timezone-aware UTC datetimes and epoch milliseconds."""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import UTC, datetime

# Returns the current time as epoch milliseconds. Injected wherever elapsed
# time matters so tests can move the clock without sleeping.
Clock = Callable[[], int]

MILLIS_PER_HOUR = 60 * 60 * 1000


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def now_millis() -> int:
    """Current time as integer epoch milliseconds."""
    return time.time_ns() // 1_000_000


def to_millis(value: datetime) -> int:
    """Convert a datetime to epoch milliseconds (naive values are taken as UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return int(value.timestamp() * 1000)


def from_millis(millis: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(millis / 1000, tz=UTC)


def hours_between(earlier_ms: int, later_ms: int) -> float:
    return (later_ms - earlier_ms) / MILLIS_PER_HOUR


def to_iso_utc(value: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a Z suffix (naive values are taken as UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
