"""Replica synchronization routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from field_sync.app import FieldSyncApp
from field_sync.server.dependencies import get_app
from field_sync.server.models import (
    SyncCheckResponse,
    SyncOutcomeResponse,
    SyncStatusResponse,
)

router = APIRouter(prefix="/sync", tags=["sync"])


@router.get(
    "/status",
    response_model=SyncStatusResponse,
    summary="Get sync status",
    description="Last sync time, hours elapsed, needs-sync flag, connectivity and initialization.",
)
async def get_status(app: Annotated[FieldSyncApp, Depends(get_app)]) -> SyncStatusResponse:
    status = app.sync_service.get_status()
    return SyncStatusResponse(**status.to_dict())


@router.post(
    "/check",
    response_model=SyncCheckResponse,
    summary="Sync if needed",
    description="Evaluate the trigger policy and run a bulk sync when it says so.",
)
async def check_and_sync(app: Annotated[FieldSyncApp, Depends(get_app)]) -> SyncCheckResponse:
    outcome = await app.sync_service.check_and_sync_if_needed()
    if outcome is None:
        return SyncCheckResponse(synced=False)
    return SyncCheckResponse(synced=True, outcome=SyncOutcomeResponse.from_outcome(outcome))


@router.post(
    "/force",
    response_model=SyncOutcomeResponse,
    summary="Force a sync",
    description="Refresh the replica now, regardless of elapsed time.",
)
async def force_sync(app: Annotated[FieldSyncApp, Depends(get_app)]) -> SyncOutcomeResponse:
    outcome = await app.sync_service.force_sync()
    return SyncOutcomeResponse.from_outcome(outcome)
