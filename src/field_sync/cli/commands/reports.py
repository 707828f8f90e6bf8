"""Offline report commands: add, list, show, submit, submit-pending."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.table import Table

from field_sync.cli._helpers import console, fail, open_app, output_json, run_async
from field_sync.core.mutation import MutationStatus, QueuedMutation, ReportPayload
from field_sync.errors import FieldSyncError
from field_sync.reports.queue import SubmitResult

reports_app = typer.Typer(help="Offline report queue commands")

_STATUS_STYLES = {
    MutationStatus.PENDING: "yellow",
    MutationStatus.SYNCING: "cyan",
    MutationStatus.SYNCED: "green",
    MutationStatus.ERROR: "red",
}


def _summary(mutation: QueuedMutation) -> dict[str, Any]:
    return {
        "id": mutation.id,
        "title": mutation.payload.title,
        "user_name": mutation.payload.user_name,
        "items": len(mutation.payload.items),
        "attachments": mutation.payload.attachment_count,
        "created_at": mutation.created_at.isoformat(),
        "sync_status": mutation.sync_status.value,
        "synced_at": mutation.synced_at.isoformat() if mutation.synced_at else None,
        "last_error": mutation.last_error,
    }


def _result_dict(result: SubmitResult) -> dict[str, Any]:
    return {
        **_summary(result.mutation),
        "attempted": result.attempted,
        "success": result.success,
    }


@reports_app.command("add")
def add_report(
    payload_file: Annotated[
        Path, typer.Argument(help="JSON file with the report payload", exists=True, dir_okay=False)
    ],
) -> None:
    """Queue a report from a JSON payload file.

    The file holds title, user_id, user_name, items and general_notes.

    Examples:
        fieldsync reports add report.json
    """
    try:
        data = json.loads(payload_file.read_text(encoding="utf-8"))
        payload = ReportPayload.from_dict(data)
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        fail(f"Invalid report payload: {e}")

    async def _add() -> dict[str, Any]:
        app = await open_app()
        mutation = await app.queue.enqueue(payload)
        return _summary(mutation)

    result = run_async(_add())
    typer.secho(f"Queued report {result['id']}", fg=typer.colors.GREEN)


@reports_app.command("list")
def list_reports(
    status: Annotated[
        MutationStatus | None,
        typer.Option("--status", "-s", help="Filter by sync status"),
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """List queued reports, newest first.

    Examples:
        fieldsync reports list
        fieldsync reports list --status error
    """

    async def _list() -> list[dict[str, Any]]:
        app = await open_app()
        return [_summary(m) for m in await app.queue.list_reports(status)]

    reports = run_async(_list())
    if json_output:
        output_json({"reports": reports, "count": len(reports)})
        return

    if not reports:
        typer.echo("No queued reports.")
        return

    table = Table(title=f"Queued reports ({len(reports)})")
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("User")
    table.add_column("Created")
    table.add_column("Status")
    for report in reports:
        style = _STATUS_STYLES[MutationStatus(report["sync_status"])]
        table.add_row(
            report["id"],
            report["title"],
            report["user_name"],
            report["created_at"],
            f"[{style}]{report['sync_status']}[/{style}]",
        )
    console.print(table)


@reports_app.command("show")
def show_report(
    report_id: Annotated[str, typer.Argument(help="Report ID")],
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show one queued report."""

    async def _show() -> dict[str, Any] | None:
        app = await open_app()
        mutation = await app.queue.get(report_id)
        return _summary(mutation) if mutation else None

    report = run_async(_show())
    if report is None:
        fail(f"Report {report_id} not found")

    if json_output:
        output_json(report)
        return

    for key, value in report.items():
        typer.echo(f"{key:>12}: {value if value is not None else '-'}")


@reports_app.command("submit")
def submit_report(
    report_id: Annotated[str, typer.Argument(help="Report ID")],
) -> None:
    """Submit one queued report to the remote system.

    Examples:
        fieldsync reports submit 3f2c...
    """

    async def _submit() -> dict[str, Any]:
        app = await open_app(recover=True)
        try:
            return _result_dict(await app.queue.submit(report_id))
        except FieldSyncError as e:
            fail(str(e))

    result = run_async(_submit())
    if not result["attempted"]:
        typer.echo(f"Report {report_id} is already synced.")
    elif result["success"]:
        typer.secho(f"Report {report_id} synced.", fg=typer.colors.GREEN)
    else:
        typer.secho(f"Report {report_id} failed: {result['last_error']}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)


@reports_app.command("submit-pending")
def submit_pending(
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Submit every pending or errored report, oldest first."""

    async def _submit_all() -> list[dict[str, Any]]:
        app = await open_app(recover=True)
        try:
            return [_result_dict(r) for r in await app.queue.submit_all_pending()]
        except FieldSyncError as e:
            fail(str(e))

    results = run_async(_submit_all())
    succeeded = sum(1 for r in results if r["success"])
    if json_output:
        output_json({"results": results, "succeeded": succeeded, "failed": len(results) - succeeded})
    elif not results:
        typer.echo("Nothing to submit.")
    else:
        for r in results:
            mark = "[OK]" if r["success"] else f"[FAILED] {r['last_error']}"
            typer.echo(f"  {r['id']} {r['title']} {mark}")
        typer.echo(f"\n{succeeded}/{len(results)} reports synced.")

    if succeeded < len(results):
        raise typer.Exit(1)


def register(app: typer.Typer) -> None:
    """Register report commands on the app."""
    app.add_typer(reports_app, name="reports")
