"""Response cache commands: install, fetch, stats."""

from __future__ import annotations

from typing import Annotated, Any

import typer
from rich.table import Table

from field_sync.cli._helpers import console, fail, open_app, output_json, run_async
from field_sync.errors import FetchError
from field_sync.router.http import Request

cache_app = typer.Typer(help="Offline response cache commands")


@cache_app.command("install")
def install() -> None:
    """Precache the offline pages and assets, then drop stale partitions."""

    async def _install() -> tuple[int, int, list[str]]:
        app = await open_app()
        cached = await app.router.install()
        removed = await app.router.activate()
        return cached, len(app.router.precache_urls), removed

    cached, total, removed = run_async(_install())
    color = typer.colors.GREEN if cached == total else typer.colors.YELLOW
    typer.secho(f"Precached {cached}/{total} URLs.", fg=color)
    for name in removed:
        typer.echo(f"  Deleted stale partition: {name}")


@cache_app.command("fetch")
def fetch(
    path: Annotated[str, typer.Argument(help="Path or URL to request, e.g. /offline")],
    navigate: Annotated[
        bool, typer.Option("--navigate", "-n", help="Treat as a page navigation")
    ] = False,
    show_body: Annotated[bool, typer.Option("--body", "-b", help="Print the body")] = False,
) -> None:
    """Request a URL through the cache router and report where it was served from.

    Examples:
        fieldsync cache fetch /offline --navigate
        fieldsync --offline cache fetch /offline/gestion-reportes -n
    """

    async def _fetch() -> dict[str, Any]:
        app = await open_app()
        url = path if "://" in path else app.router.absolute_url(path)
        request = Request(url=url, mode="navigate" if navigate else "cors")
        rule = app.router.resolve(request)
        try:
            response = await app.router.handle(request)
        except FetchError as e:
            fail(str(e))
        return {
            "url": url,
            "rule": rule.name if rule else None,
            "strategy": rule.strategy.value if rule else None,
            "status": response.status,
            "source": response.source,
            "bytes": len(response.body),
            "body": response.text(),
        }

    result = run_async(_fetch())
    typer.echo(f"{result['url']}")
    typer.echo(f"  rule:     {result['rule'] or 'bypass'} ({result['strategy'] or '-'})")
    typer.echo(f"  status:   {result['status']}")
    typer.echo(f"  source:   {result['source']}")
    typer.echo(f"  size:     {result['bytes']} bytes")
    if show_body:
        typer.echo(result["body"])


@cache_app.command("stats")
def stats(
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show entry counts per cache partition."""

    async def _stats() -> dict[str, int]:
        app = await open_app()
        return await app.router.stats()

    counts = run_async(_stats())
    if json_output:
        output_json(counts)
        return

    table = Table(title="Cache partitions")
    table.add_column("Partition")
    table.add_column("Entries", justify="right")
    for name, count in counts.items():
        table.add_row(name, str(count))
    console.print(table)


def register(app: typer.Typer) -> None:
    """Register cache commands on the app."""
    app.add_typer(cache_app, name="cache")
