"""Translation of locally shaped reports into the remote submission shape."""

from __future__ import annotations

from typing import Any

from field_sync.core.mutation import QueuedMutation, ReportItem
from field_sync.remote.client import FileUpload
from field_sync.utils.timeutils import to_iso_utc


def to_remote_variables(mutation: QueuedMutation) -> tuple[dict[str, Any], list[FileUpload]]:
    """
    Build mutation variables and the file uploads they reference.

    The original creation time is sent as the record's creation time, and
    the record is flagged as coming from offline synchronization. Each
    attachment leaves a ``None`` placeholder at its variable path.

    Returns:
        (variables, uploads)
    """
    payload = mutation.payload
    uploads: list[FileUpload] = []
    items = [
        _item_to_remote(item, index, uploads) for index, item in enumerate(payload.items)
    ]

    variables = {
        "input": {
            "title": payload.title,
            "user_id": payload.user_id,
            "user_name": payload.user_name,
            "items": items,
            "general_notes": payload.general_notes,
            "is_offline_sync": True,
            "created_at": to_iso_utc(mutation.created_at),
        }
    }
    return variables, uploads


def _item_to_remote(item: ReportItem, index: int, uploads: list[FileUpload]) -> dict[str, Any]:
    placeholders: list[None] = []
    for file_index, attachment in enumerate(item.evidence_files):
        uploads.append(
            FileUpload(f"variables.input.items.{index}.evidence_files.{file_index}", attachment)
        )
        placeholders.append(None)

    return {
        "resource_id": item.resource_id,
        "code": item.code,
        "name": item.name,
        "brand": item.brand,
        "condition": item.condition,
        "description": item.description,
        "evidence_urls": list(item.evidence_urls),
        "evidence_files": placeholders,
    }
