"""API routes for the field-sync server."""

from field_sync.server.routes.connectivity import router as connectivity_router
from field_sync.server.routes.proxy import router as proxy_router
from field_sync.server.routes.reports import router as reports_router
from field_sync.server.routes.resources import router as resources_router
from field_sync.server.routes.sync import router as sync_router

__all__ = [
    "connectivity_router",
    "proxy_router",
    "reports_router",
    "resources_router",
    "sync_router",
]
