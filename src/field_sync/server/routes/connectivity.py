"""Connectivity routes: the host reports online/offline state."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from field_sync.app import FieldSyncApp
from field_sync.server.dependencies import get_app
from field_sync.server.models import ConnectivityRequest, ConnectivityResponse

router = APIRouter(prefix="/connectivity", tags=["connectivity"])


@router.get("", response_model=ConnectivityResponse, summary="Get connectivity")
async def get_connectivity(
    app: Annotated[FieldSyncApp, Depends(get_app)],
) -> ConnectivityResponse:
    return ConnectivityResponse(online=app.connectivity.is_online)


@router.put(
    "",
    response_model=ConnectivityResponse,
    summary="Report connectivity",
    description="An offline to online transition fires the became-online event in the background.",
)
async def set_connectivity(
    request: ConnectivityRequest,
    app: Annotated[FieldSyncApp, Depends(get_app)],
) -> ConnectivityResponse:
    await app.connectivity.set_online(request.online)
    return ConnectivityResponse(online=app.connectivity.is_online)
