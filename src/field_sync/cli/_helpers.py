"""Shared CLI helpers for configuration, app lifecycle, and output formatting."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Coroutine
from dataclasses import dataclass
from pathlib import Path
from typing import Any, NoReturn, TypeVar

import typer
from rich.console import Console

from field_sync.app import FieldSyncApp
from field_sync.connectivity import ConnectivitySignal
from field_sync.utils.config import Config

logger = logging.getLogger(__name__)

T = TypeVar("T")

console = Console()


@dataclass
class CLIState:
    """Global options given before the command name."""

    config_path: Path | None = None
    offline: bool = False
    verbose: bool = False


state = CLIState()

# Apps opened during a CLI command, closed before the event loop shuts down
# so aiosqlite's worker thread does not outlive the loop.
_active_apps: list[FieldSyncApp] = []


def get_config() -> Config:
    """Get configuration, honoring --config."""
    return Config.load(state.config_path)


async def open_app(*, auto_sync: bool = False, recover: bool = False) -> FieldSyncApp:
    """
    Build and start an app for one CLI command.

    The precache is left to ``fieldsync cache install`` and the server.

    Args:
        auto_sync: Run the start-up sync check (off for read-only commands)
        recover: Release stale submission claims (only for commands that submit)
    """
    config = get_config()
    connectivity = ConnectivitySignal(
        online=not state.offline,
        probe_url=None if state.offline else config.probe_url,
    )
    app = await FieldSyncApp.create(config, connectivity=connectivity)
    _active_apps.append(app)
    await app.start(auto_sync=auto_sync, recover=recover, precache=False)
    return app


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run an async CLI command, closing opened apps before the loop is torn down."""

    async def _with_cleanup() -> T:
        try:
            return await coro
        finally:
            for app in _active_apps:
                try:
                    await app.close()
                except Exception:
                    logger.debug("Failed to close app during cleanup", exc_info=True)
            _active_apps.clear()
            await asyncio.sleep(0)

    return asyncio.run(_with_cleanup())


def output_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, default=str))


def fail(message: str) -> NoReturn:
    """Print an error and exit with status 1."""
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(1)


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
