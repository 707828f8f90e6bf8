"""Request/response types and the network transport used by the cache router."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from typing import Any
from urllib.parse import urlsplit

import aiohttp

from field_sync.errors import FetchError

logger = logging.getLogger(__name__)

# Status used for opaque (cross-origin, no-cors) responses
OPAQUE_STATUS = 0


@dataclass(frozen=True)
class Request:
    """An intercepted outgoing request.

    Attributes:
        url: Absolute URL, also the cache key
        method: HTTP method
        mode: Request mode; "navigate" marks page navigations
        headers: Request headers
        body: Request body, forwarded untouched for non-GET requests
    """

    url: str
    method: str = "GET"
    mode: str = "cors"
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None

    @property
    def path(self) -> str:
        return urlsplit(self.url).path or "/"

    @property
    def is_navigation(self) -> bool:
        return self.mode == "navigate"

    @property
    def is_get(self) -> bool:
        return self.method.upper() == "GET"


@dataclass(frozen=True)
class Response:
    """A response returned to the caller.

    Attributes:
        status: HTTP status (0 for opaque responses)
        headers: Response headers
        body: Raw body bytes
        source: Where it came from: network, cache, fallback or synthesized
    """

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    source: str = "network"

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def is_opaque(self) -> bool:
        return self.status == OPAQUE_STATUS

    def with_source(self, source: str) -> Response:
        return replace(self, source=source)

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding, errors="replace")

    @classmethod
    def service_unavailable(cls, message: str = "") -> Response:
        """Synthesized 503 for requests that cannot be served."""
        return cls(
            status=503,
            headers={"Content-Type": "text/plain; charset=utf-8"},
            body=message.encode("utf-8"),
            source="synthesized",
        )


# Performs the actual network request. Raises FetchError on network failure.
Fetcher = Callable[[Request], Awaitable[Response]]


class AiohttpFetcher:
    """
    Network transport backed by an aiohttp session.

    Usage:
        async with AiohttpFetcher() as fetch:
            response = await fetch(Request("http://localhost:3000/offline"))
    """

    def __init__(self, *, timeout: float = 30.0) -> None:
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    async def connect(self) -> None:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)

    async def close(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> AiohttpFetcher:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def __call__(self, request: Request) -> Response:
        if not self._session:
            await self.connect()

        assert self._session is not None

        try:
            async with self._session.request(
                request.method,
                request.url,
                headers=request.headers,
                data=request.body,
                allow_redirects=True,
            ) as response:
                body = await response.read()
                return Response(
                    status=response.status,
                    headers={k: v for k, v in response.headers.items()},
                    body=body,
                )
        except aiohttp.ClientError as e:
            raise FetchError(f"Fetch failed for {request.url}: {e}") from e
        except asyncio.TimeoutError as e:
            raise FetchError(f"Fetch timed out for {request.url}") from e
