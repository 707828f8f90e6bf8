"""Local HTTP API for field-sync."""

from field_sync.server.app import create_app

__all__ = ["create_app"]
