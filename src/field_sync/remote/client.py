"""HTTP client for the remote GraphQL-style RPC surface."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import aiohttp

from field_sync.core.mutation import Attachment
from field_sync.errors import RemoteError, RemoteResponseError
from field_sync.remote.operations import (
    CREATE_FIXED_ASSET_REPORT,
    CREATE_FIXED_ASSET_REPORT_FIELD,
    LIST_RESOURCES,
    LIST_RESOURCES_FIELD,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileUpload:
    """A binary file bound to a variable path, e.g. ``variables.input.items.0.evidence_files.0``."""

    path: str
    attachment: Attachment


class RemoteClient:
    """
    Client for the remote query surface.

    Every operation is a named document plus typed variables; the answer
    carries one named result field under ``data``.

    Usage:
        async with RemoteClient("https://api.example.com/graphql") as client:
            resources = await client.list_resources(only_fixed_assets=True)
    """

    def __init__(
        self,
        endpoint: str,
        *,
        timeout: float = 30.0,
        api_key: str | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            endpoint: URL of the RPC endpoint
            timeout: Request timeout in seconds
            api_key: Optional bearer token
        """
        self._endpoint = endpoint
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._api_key = api_key
        self._session: aiohttp.ClientSession | None = None

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def connect(self) -> None:
        """Open the HTTP session."""
        if self._session is None:
            headers = {"Accept": "application/json"}
            if self._api_key:
                headers["Authorization"] = f"Bearer {self._api_key}"
            self._session = aiohttp.ClientSession(timeout=self._timeout, headers=headers)

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> RemoteClient:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.close()

    # ========== Generic operations ==========

    async def execute_query(
        self,
        document: str,
        variables: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Run a query or mutation without files.

        Returns:
            The ``data`` object of the response

        Raises:
            RemoteError: On transport failure, HTTP error or reported errors
            RemoteResponseError: If the response has no ``data`` object
        """
        body = {"query": document, "variables": variables or {}}
        return await self._post(json_body=body)

    async def execute_mutation_with_files(
        self,
        document: str,
        variables: dict[str, Any],
        files: Sequence[FileUpload] = (),
    ) -> dict[str, Any]:
        """
        Run a mutation whose variables reference binary files.

        Files are sent as a multipart request (operations, map, one part per
        file). The variables must hold ``None`` at every file path. Without
        files this is a plain JSON request.
        """
        if not files:
            return await self.execute_query(document, variables)

        form = aiohttp.FormData()
        form.add_field(
            "operations",
            json.dumps({"query": document, "variables": variables}),
            content_type="application/json",
        )
        file_map = {str(i): [upload.path] for i, upload in enumerate(files)}
        form.add_field("map", json.dumps(file_map), content_type="application/json")
        for i, upload in enumerate(files):
            form.add_field(
                str(i),
                upload.attachment.data,
                filename=upload.attachment.filename,
                content_type=upload.attachment.content_type,
            )

        logger.debug("Sending multipart mutation with %d file(s)", len(files))
        return await self._post(form=form, headers={"Apollo-Require-Preflight": "true"})

    # ========== Named operations ==========

    async def list_resources(self, *, only_fixed_assets: bool = True) -> list[Any]:
        """
        Fetch the complete authoritative resource list.

        Raises:
            RemoteResponseError: If the result field is missing or not a list
        """
        data = await self.execute_query(LIST_RESOURCES, {"onlyFixedAssets": only_fixed_assets})
        resources = data.get(LIST_RESOURCES_FIELD)
        if not isinstance(resources, list):
            raise RemoteResponseError(f"Response lacks a '{LIST_RESOURCES_FIELD}' list")
        return resources

    async def create_fixed_asset_report(
        self,
        variables: dict[str, Any],
        files: Sequence[FileUpload] = (),
    ) -> dict[str, Any]:
        """
        Submit a new report.

        Raises:
            RemoteResponseError: If the created record is missing from the response
        """
        data = await self.execute_mutation_with_files(CREATE_FIXED_ASSET_REPORT, variables, files)
        created = data.get(CREATE_FIXED_ASSET_REPORT_FIELD)
        if not isinstance(created, dict):
            raise RemoteResponseError(
                f"Response lacks '{CREATE_FIXED_ASSET_REPORT_FIELD}'; report was not created"
            )
        return created

    # ========== Transport ==========

    async def _post(
        self,
        *,
        json_body: dict[str, Any] | None = None,
        form: aiohttp.FormData | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        if not self._session:
            await self.connect()

        assert self._session is not None

        try:
            async with self._session.post(
                self._endpoint,
                json=json_body,
                data=form,
                headers=headers,
            ) as response:
                if response.status >= 400:
                    text = await response.text()
                    raise RemoteError(f"Server error: {text}", status_code=response.status)
                try:
                    payload = await response.json(content_type=None)
                except ValueError as e:
                    raise RemoteResponseError(
                        "Response is not valid JSON", status_code=response.status
                    ) from e
        except aiohttp.ClientError as e:
            raise RemoteError(f"Connection error: {e}") from e
        except asyncio.TimeoutError as e:
            raise RemoteError("Request timed out") from e

        return _extract_data(payload)


def _extract_data(payload: Any) -> dict[str, Any]:
    """Pull ``data`` out of a response body, surfacing reported errors."""
    if not isinstance(payload, dict):
        raise RemoteResponseError("Response body is not an object")

    errors = payload.get("errors")
    if errors:
        first = errors[0] if isinstance(errors, list) else errors
        message = first.get("message") if isinstance(first, dict) else str(first)
        raise RemoteError(f"Remote error: {message}")

    data = payload.get("data")
    if not isinstance(data, dict):
        raise RemoteResponseError("Response lacks a 'data' object")
    return data
