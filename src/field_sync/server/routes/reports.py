"""Offline report routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from field_sync.app import FieldSyncApp
from field_sync.core.mutation import MutationStatus
from field_sync.errors import (
    ConnectivityRequiredError,
    MutationInFlightError,
    MutationNotFoundError,
)
from field_sync.server.dependencies import get_app
from field_sync.server.models import (
    CreateReportRequest,
    ErrorResponse,
    ReportListResponse,
    ReportSummary,
    SubmitAllResponse,
    SubmitResponse,
)

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get(
    "",
    response_model=ReportListResponse,
    summary="List queued reports",
    description="Reports created offline, newest first.",
)
async def list_reports(
    app: Annotated[FieldSyncApp, Depends(get_app)],
    status: Annotated[MutationStatus | None, Query()] = None,
) -> ReportListResponse:
    mutations = await app.queue.list_reports(status)
    return ReportListResponse(
        reports=[ReportSummary.from_mutation(m) for m in mutations],
        total=len(mutations),
    )


@router.post(
    "",
    response_model=ReportSummary,
    status_code=201,
    summary="Queue a report",
)
async def create_report(
    request: CreateReportRequest,
    app: Annotated[FieldSyncApp, Depends(get_app)],
) -> ReportSummary:
    mutation = await app.queue.enqueue(request.to_payload(), created_at=request.created_at)
    return ReportSummary.from_mutation(mutation)


@router.post(
    "/submit-pending",
    response_model=SubmitAllResponse,
    responses={503: {"model": ErrorResponse}},
    summary="Submit all pending reports",
    description="Submit pending and errored reports one by one, oldest first.",
)
async def submit_pending(app: Annotated[FieldSyncApp, Depends(get_app)]) -> SubmitAllResponse:
    try:
        results = await app.queue.submit_all_pending()
    except ConnectivityRequiredError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e

    succeeded = sum(1 for r in results if r.success)
    return SubmitAllResponse(
        results=[SubmitResponse.from_result(r) for r in results],
        succeeded=succeeded,
        failed=len(results) - succeeded,
    )


@router.get(
    "/{report_id}",
    response_model=ReportSummary,
    responses={404: {"model": ErrorResponse}},
    summary="Get a queued report",
)
async def get_report(
    report_id: str,
    app: Annotated[FieldSyncApp, Depends(get_app)],
) -> ReportSummary:
    mutation = await app.queue.get(report_id)
    if mutation is None:
        raise HTTPException(status_code=404, detail="Report not found")
    return ReportSummary.from_mutation(mutation)


@router.post(
    "/{report_id}/submit",
    response_model=SubmitResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
    summary="Submit one report",
    description="Replay a queued report. Remote failures are returned, not raised.",
)
async def submit_report(
    report_id: str,
    app: Annotated[FieldSyncApp, Depends(get_app)],
) -> SubmitResponse:
    try:
        result = await app.queue.submit(report_id)
    except ConnectivityRequiredError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    except MutationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except MutationInFlightError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return SubmitResponse.from_result(result)
