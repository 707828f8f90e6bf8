"""Replica read routes."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query

from field_sync.app import FieldSyncApp
from field_sync.server.dependencies import get_app
from field_sync.server.models import ErrorResponse, ResourcePageResponse

router = APIRouter(prefix="/resources", tags=["resources"])


@router.get(
    "",
    response_model=ResourcePageResponse,
    summary="List replica resources",
    description="Paginated, searchable view of the local replica. Syncs first when due.",
)
async def list_resources(
    app: Annotated[FieldSyncApp, Depends(get_app)],
    search: Annotated[str, Query(max_length=200)] = "",
    page: Annotated[int, Query(ge=1)] = 1,
    items_per_page: Annotated[int, Query(ge=1, le=500)] = 50,
) -> ResourcePageResponse:
    result = await app.reader.list_resources(search, page, items_per_page)
    return ResourcePageResponse(**result.to_dict())


@router.get(
    "/{resource_id}",
    responses={404: {"model": ErrorResponse}},
    summary="Get one replica resource",
)
async def get_resource(
    resource_id: str,
    app: Annotated[FieldSyncApp, Depends(get_app)],
) -> dict[str, Any]:
    resource = await app.reader.get_resource(resource_id)
    if resource is None:
        raise HTTPException(status_code=404, detail="Resource not found")
    return resource
