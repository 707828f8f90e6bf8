"""Proxy route: sends any request through the cache router."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi import Request as HTTPRequest
from fastapi.responses import Response as HTTPResponse

from field_sync.app import FieldSyncApp
from field_sync.errors import FetchError
from field_sync.router.http import Request
from field_sync.server.dependencies import get_app

router = APIRouter(prefix="/proxy", tags=["proxy"])

# Hop-by-hop and encoding headers are recomputed by the server
_DROP_HEADERS = frozenset(
    {"connection", "content-encoding", "content-length", "transfer-encoding", "keep-alive"}
)
_FORWARD_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


@router.api_route(
    "/{path:path}",
    methods=_FORWARD_METHODS,
    summary="Route a request through the cache router",
    description="Set X-Request-Mode: navigate for page navigations.",
)
async def proxy(
    path: str,
    http_request: HTTPRequest,
    app: Annotated[FieldSyncApp, Depends(get_app)],
) -> HTTPResponse:
    url = app.router.absolute_url(path)
    if http_request.url.query:
        url = f"{url}?{http_request.url.query}"

    body = await http_request.body()
    request = Request(
        url=url,
        method=http_request.method,
        mode=http_request.headers.get("x-request-mode", "cors"),
        headers={
            k: v
            for k, v in http_request.headers.items()
            if k.lower() not in _DROP_HEADERS and k.lower() not in ("host", "x-request-mode")
        },
        body=body or None,
    )

    try:
        response = await app.router.handle(request)
    except FetchError as e:
        return HTTPResponse(content=str(e), status_code=502, media_type="text/plain")

    headers = {k: v for k, v in response.headers.items() if k.lower() not in _DROP_HEADERS}
    headers["X-Cache-Source"] = response.source
    # Opaque responses have no usable status of their own
    status = response.status if response.status else 200
    return HTTPResponse(content=response.body, status_code=status, headers=headers)
