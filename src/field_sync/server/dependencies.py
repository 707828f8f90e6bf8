"""Shared dependencies for API routes."""

from __future__ import annotations

from field_sync.app import FieldSyncApp


async def get_app() -> FieldSyncApp:
    """
    Dependency to get the application instance.

    This is overridden by the application at startup.
    """
    raise NotImplementedError("Application not configured")
