"""FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from field_sync import __version__
from field_sync.app import FieldSyncApp
from field_sync.server.dependencies import get_app as shared_get_app
from field_sync.server.models import HealthResponse
from field_sync.server.routes import (
    connectivity_router,
    proxy_router,
    reports_router,
    resources_router,
    sync_router,
)
from field_sync.utils.config import Config, get_config


def create_app(
    config: Config | None = None,
    *,
    field_app: FieldSyncApp | None = None,
    title: str = "field-sync",
    description: str = "Offline synchronization engine for field data entry",
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Configuration (default: process configuration)
        field_app: Pre-built application to serve; when given, the caller owns it
        title: API title
        description: API description

    Returns:
        Configured FastAPI application
    """
    config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler."""
        if field_app is not None:
            app.state.field_app = field_app
            yield
            return

        owned = await FieldSyncApp.create(config)
        app.state.field_app = owned
        await owned.start()
        try:
            yield
        finally:
            await owned.close()

    app = FastAPI(
        title=title,
        description=description,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    cors_origins = list(config.cors_origins)
    is_wildcard = cors_origins == ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=not is_wildcard,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    async def get_app() -> FieldSyncApp:
        instance: FieldSyncApp = app.state.field_app
        return instance

    app.dependency_overrides[shared_get_app] = get_app

    app.include_router(sync_router)
    app.include_router(resources_router)
    app.include_router(reports_router)
    app.include_router(connectivity_router)
    app.include_router(proxy_router)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="healthy", version=__version__)

    return app
