"""Tests for the report translation into remote variables."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from field_sync.core.mutation import Attachment, QueuedMutation, ReportItem, ReportPayload
from field_sync.reports.translate import to_remote_variables


def test_flags_offline_sync_and_keeps_creation_time(
    sample_payload: ReportPayload, created_at: datetime
) -> None:
    variables, _ = to_remote_variables(QueuedMutation.create(sample_payload, created_at=created_at))

    data = variables["input"]
    assert data["is_offline_sync"] is True
    assert data["created_at"] == "2026-01-10T08:30:00.000Z"
    assert data["title"] == "Quarterly inspection"
    assert data["user_id"] == "user-7"
    assert data["general_notes"] == "All checked"


def test_creation_time_is_normalized_to_utc(sample_payload: ReportPayload) -> None:
    local = datetime(2026, 1, 10, 3, 30, tzinfo=timezone(timedelta(hours=-5)))
    variables, _ = to_remote_variables(QueuedMutation.create(sample_payload, created_at=local))
    assert variables["input"]["created_at"] == "2026-01-10T08:30:00.000Z"


def test_attachments_become_placeholders_and_uploads(
    sample_payload: ReportPayload, created_at: datetime
) -> None:
    variables, uploads = to_remote_variables(
        QueuedMutation.create(sample_payload, created_at=created_at)
    )

    items = variables["input"]["items"]
    assert items[0]["evidence_files"] == [None]
    assert items[0]["evidence_urls"] == ["https://cdn.example.com/a.jpg"]
    assert items[1]["evidence_files"] == []
    assert [u.path for u in uploads] == ["variables.input.items.0.evidence_files.0"]
    assert uploads[0].attachment.filename == "photo.jpg"


def test_upload_paths_follow_item_and_file_order(created_at: datetime) -> None:
    photo = Attachment("p.jpg", "image/jpeg", b"1")
    payload = ReportPayload(
        title="t",
        user_id="u",
        items=(
            ReportItem(resource_id="a"),
            ReportItem(resource_id="b", evidence_files=(photo, photo)),
        ),
    )

    _, uploads = to_remote_variables(QueuedMutation.create(payload, created_at=created_at))

    assert [u.path for u in uploads] == [
        "variables.input.items.1.evidence_files.0",
        "variables.input.items.1.evidence_files.1",
    ]
