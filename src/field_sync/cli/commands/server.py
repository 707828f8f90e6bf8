"""Local API server command."""

from __future__ import annotations

from typing import Annotated

import typer

from field_sync.cli._helpers import get_config


def serve(
    host: Annotated[str | None, typer.Option("--host", "-h", help="Host to bind to")] = None,
    port: Annotated[int | None, typer.Option("--port", "-p", help="Port to bind to")] = None,
    reload: Annotated[
        bool, typer.Option("--reload", "-r", help="Enable auto-reload for development")
    ] = False,
) -> None:
    """Run the local field-sync API server.

    Examples:
        fieldsync serve                    # Run on the configured host/port
        fieldsync serve -p 9000            # Run on port 9000
        fieldsync serve --reload           # Development mode
    """
    try:
        import uvicorn
    except ImportError:
        typer.echo("Error: uvicorn not installed. Run: pip install field-sync[server]", err=True)
        raise typer.Exit(1)

    config = get_config()
    bind_host = host or config.host
    bind_port = port or config.port

    typer.echo(f"Starting field-sync API server on http://{bind_host}:{bind_port}")
    typer.echo(f"  Docs: http://{bind_host}:{bind_port}/docs")

    uvicorn.run(
        "field_sync.server.app:create_app",
        host=bind_host,
        port=bind_port,
        reload=reload,
        factory=True,
        log_level="debug" if config.debug else "info",
    )


def register(app: typer.Typer) -> None:
    """Register server commands on the app."""
    app.command()(serve)
