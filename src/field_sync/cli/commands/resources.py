"""Replica browsing command."""

from __future__ import annotations

from typing import Annotated, Any

import typer
from rich.table import Table

from field_sync.cli._helpers import console, open_app, output_json, run_async


def resources(
    search: Annotated[str, typer.Argument(help="Search term")] = "",
    page: Annotated[int, typer.Option("--page", "-p", min=1, help="Page number")] = 1,
    per_page: Annotated[
        int, typer.Option("--per-page", "-n", min=1, help="Items per page")
    ] = 50,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """List resources from the local replica (syncs first when due).

    Examples:
        fieldsync resources
        fieldsync resources drill --page 2
    """

    async def _resources() -> tuple[dict[str, Any], str]:
        app = await open_app()
        result = await app.reader.list_resources(search, page, per_page)
        return result.to_dict(), app.config.id_field

    data, id_field = run_async(_resources())
    if json_output:
        output_json(data)
        return

    info = data["info"]
    if not data["resources"]:
        typer.echo("No resources found.")
        return

    table = Table(title=f"Resources (page {info['page']}/{info['pages']}, {info['total']} total)")
    table.add_column("ID", style="dim")
    table.add_column("Code")
    table.add_column("Name")
    table.add_column("Status")
    for resource in data["resources"]:
        table.add_row(
            str(resource.get(id_field, "")),
            str(resource.get("code") or ""),
            str(resource.get("name") or ""),
            str(resource.get("status") or ""),
        )
    console.print(table)


def register(app: typer.Typer) -> None:
    """Register resource commands on the app."""
    app.command()(resources)
