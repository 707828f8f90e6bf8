"""field-sync CLI main entry point."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from field_sync.cli._helpers import setup_logging, state
from field_sync.cli.commands import cache, reports, resources, server, sync

app = typer.Typer(
    name="fieldsync",
    help="field-sync - offline synchronization engine for field data entry",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to a config.toml file", dir_okay=False),
    ] = None,
    offline: Annotated[
        bool, typer.Option("--offline", help="Treat the network as unavailable")
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """Global options."""
    state.config_path = config_path
    state.offline = offline
    state.verbose = verbose
    setup_logging(verbose)


sync.register(app)
resources.register(app)
reports.register(app)
cache.register(app)
server.register(app)


@app.command()
def version() -> None:
    """Show version information."""
    from field_sync import __version__

    typer.echo(f"field-sync v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
