"""Pydantic models for API request/response."""

from __future__ import annotations

import base64
import binascii
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from field_sync.core.mutation import (
    Attachment,
    QueuedMutation,
    ReportItem,
    ReportPayload,
)
from field_sync.reports.queue import SubmitResult
from field_sync.sync.bulk_sync import SyncOutcome

# ============ Request Models ============


class AttachmentModel(BaseModel):
    """Binary evidence file, base64 encoded."""

    filename: str = Field(..., min_length=1, max_length=255)
    content_type: str = Field("application/octet-stream", max_length=255)
    data: str = Field(..., description="Base64 encoded file content")

    @field_validator("data")
    @classmethod
    def check_base64(cls, value: str) -> str:
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError("data must be valid base64") from e
        return value

    def to_attachment(self) -> Attachment:
        return Attachment(
            filename=self.filename,
            content_type=self.content_type,
            data=base64.b64decode(self.data),
        )


class ReportItemModel(BaseModel):
    """One inspected resource."""

    resource_id: str = Field(..., min_length=1)
    code: str = ""
    name: str = ""
    brand: str = ""
    condition: str = ""
    description: str = ""
    evidence_urls: list[str] = Field(default_factory=list)
    evidence_files: list[AttachmentModel] = Field(default_factory=list)

    def to_item(self) -> ReportItem:
        return ReportItem(
            resource_id=self.resource_id,
            code=self.code,
            name=self.name,
            brand=self.brand,
            condition=self.condition,
            description=self.description,
            evidence_urls=tuple(self.evidence_urls),
            evidence_files=tuple(f.to_attachment() for f in self.evidence_files),
        )


class CreateReportRequest(BaseModel):
    """Request to queue a report created offline."""

    title: str = Field(..., min_length=1, max_length=500)
    user_id: str = Field(..., min_length=1)
    user_name: str = ""
    items: list[ReportItemModel] = Field(default_factory=list)
    general_notes: str = Field("", max_length=10_000)
    created_at: datetime | None = Field(
        None, description="When the report was captured (default: now)"
    )

    def to_payload(self) -> ReportPayload:
        return ReportPayload(
            title=self.title,
            user_id=self.user_id,
            user_name=self.user_name,
            items=tuple(item.to_item() for item in self.items),
            general_notes=self.general_notes,
        )


class ConnectivityRequest(BaseModel):
    """Connectivity reported by the host."""

    online: bool


# ============ Response Models ============


class HealthResponse(BaseModel):
    status: str
    version: str


class SyncStatusResponse(BaseModel):
    """Read-only snapshot of the sync service."""

    last_sync: int
    last_sync_at: datetime | None
    hours_since_last_sync: float
    needs_sync: bool
    is_online: bool
    is_initialized: bool
    is_syncing: bool


class SyncOutcomeResponse(BaseModel):
    """Result of one bulk sync attempt."""

    mode: str
    success: bool
    fetched: int
    added: int
    updated: int
    evicted: int
    error: str | None
    started_at: int
    finished_at: int
    duration_ms: int

    @classmethod
    def from_outcome(cls, outcome: SyncOutcome) -> SyncOutcomeResponse:
        return cls(**outcome.to_dict())


class SyncCheckResponse(BaseModel):
    synced: bool = Field(..., description="Whether the policy triggered a sync")
    outcome: SyncOutcomeResponse | None = None


class ReportSummary(BaseModel):
    """A queued report without attachment contents."""

    id: str
    title: str
    user_id: str
    user_name: str
    item_count: int
    attachment_count: int
    created_at: datetime
    sync_status: str
    synced_at: datetime | None
    last_error: str | None

    @classmethod
    def from_mutation(cls, mutation: QueuedMutation) -> ReportSummary:
        payload = mutation.payload
        return cls(
            id=mutation.id,
            title=payload.title,
            user_id=payload.user_id,
            user_name=payload.user_name,
            item_count=len(payload.items),
            attachment_count=payload.attachment_count,
            created_at=mutation.created_at,
            sync_status=mutation.sync_status.value,
            synced_at=mutation.synced_at,
            last_error=mutation.last_error,
        )


class ReportListResponse(BaseModel):
    reports: list[ReportSummary]
    total: int


class SubmitResponse(BaseModel):
    """Outcome of submitting one report."""

    report: ReportSummary
    attempted: bool
    success: bool
    error: str | None = None
    remote_record: dict[str, Any] | None = None

    @classmethod
    def from_result(cls, result: SubmitResult) -> SubmitResponse:
        return cls(
            report=ReportSummary.from_mutation(result.mutation),
            attempted=result.attempted,
            success=result.success,
            error=result.error,
            remote_record=result.remote_record,
        )


class SubmitAllResponse(BaseModel):
    results: list[SubmitResponse]
    succeeded: int
    failed: int


class ResourcePageInfo(BaseModel):
    page: int
    pages: int
    items_per_page: int
    total: int


class ResourcePageResponse(BaseModel):
    info: ResourcePageInfo
    resources: list[dict[str, Any]]


class ConnectivityResponse(BaseModel):
    online: bool


class ErrorResponse(BaseModel):
    """Error response."""

    detail: str
