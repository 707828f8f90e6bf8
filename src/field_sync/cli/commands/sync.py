"""Replica sync commands: status, sync."""

from __future__ import annotations

from typing import Annotated, Any

import typer
from rich.table import Table

from field_sync.cli._helpers import console, open_app, output_json, run_async


def status(
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show replica sync status.

    Examples:
        fieldsync status
        fieldsync status --json
    """

    async def _status() -> dict[str, Any]:
        app = await open_app()
        data = app.sync_service.get_status().to_dict()
        data["replica_size"] = await app.reader.count()
        data["pending_reports"] = sum(
            1 for m in await app.queue.list_reports() if not m.is_synced
        )
        return data

    data = run_async(_status())
    if json_output:
        output_json(data)
        return

    table = Table(title="Sync status", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Last sync", data["last_sync_at"] or "never")
    table.add_row(
        "Hours since last sync",
        f"{data['hours_since_last_sync']:.1f}" if data["last_sync"] else "-",
    )
    table.add_row("Needs sync", "[yellow]yes[/yellow]" if data["needs_sync"] else "[green]no[/green]")
    table.add_row("Online", "yes" if data["is_online"] else "[red]no[/red]")
    table.add_row("Replica records", str(data["replica_size"]))
    table.add_row("Unsynced reports", str(data["pending_reports"]))
    console.print(table)


def sync(
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Sync now regardless of elapsed time")
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Refresh the local replica from the remote system.

    Without --force the sync only runs when it is due (empty replica or
    last sync older than the threshold).

    Examples:
        fieldsync sync
        fieldsync sync --force
    """

    async def _sync() -> dict[str, Any] | None:
        app = await open_app()
        if force:
            outcome = await app.sync_service.force_sync()
        else:
            outcome = await app.sync_service.check_and_sync_if_needed()
        return outcome.to_dict() if outcome else None

    result = run_async(_sync())
    if json_output:
        output_json({"synced": result is not None, "outcome": result})
        if result is not None and not result["success"]:
            raise typer.Exit(1)
        return

    if result is None:
        typer.secho("Replica is up to date, no sync needed.", fg=typer.colors.GREEN)
        return

    if not result["success"]:
        typer.secho(f"Sync failed: {result['error']}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    typer.secho(
        f"{result['mode'].capitalize()} sync complete: {result['fetched']} records "
        f"({result['added']} new, {result['updated']} updated, {result['evicted']} evicted) "
        f"in {result['duration_ms']} ms",
        fg=typer.colors.GREEN,
    )


def register(app: typer.Typer) -> None:
    """Register sync commands on the app."""
    app.command()(status)
    app.command()(sync)
