"""Sync trigger policy."""

from __future__ import annotations

from field_sync.core.sync_state import DEFAULT_THRESHOLD_HOURS


def should_sync(
    connected: bool,
    replica_size: int,
    hours_since_last_sync: float,
    threshold_hours: float = DEFAULT_THRESHOLD_HOURS,
) -> bool:
    """
    Decide whether a bulk sync must run now.

    Rules, in order:
    1. Offline never syncs.
    2. An empty replica always syncs (bootstrap beats the time gate).
    3. A sync older than the threshold syncs.

    Args:
        connected: Current connectivity
        replica_size: Number of records in the local replica
        hours_since_last_sync: Elapsed hours since the last successful sync
        threshold_hours: Time gate, 24 hours by default

    Returns:
        True if a sync should run
    """
    if not connected:
        return False
    if replica_size == 0:
        return True
    return hours_since_last_sync >= threshold_hours
