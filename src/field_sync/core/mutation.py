"""Queued mutations: offline-created reports awaiting submission."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import uuid4

from field_sync.utils.timeutils import utcnow


class MutationStatus(StrEnum):
    """Lifecycle state of a queued mutation."""

    PENDING = "pending"
    SYNCING = "syncing"
    SYNCED = "synced"
    ERROR = "error"


# States from which a submission may start
SUBMITTABLE = frozenset({MutationStatus.PENDING, MutationStatus.ERROR})


@dataclass(frozen=True)
class Attachment:
    """A binary evidence file captured with a report."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "content_type": self.content_type,
            "data": base64.b64encode(self.data).decode("ascii"),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Attachment:
        return cls(
            filename=data["filename"],
            content_type=data.get("content_type", "application/octet-stream"),
            data=base64.b64decode(data.get("data", "")),
        )


@dataclass(frozen=True)
class ReportItem:
    """One inspected resource inside a report."""

    resource_id: str
    code: str = ""
    name: str = ""
    brand: str = ""
    condition: str = ""
    description: str = ""
    evidence_urls: tuple[str, ...] = field(default_factory=tuple)
    evidence_files: tuple[Attachment, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "resource_id": self.resource_id,
            "code": self.code,
            "name": self.name,
            "brand": self.brand,
            "condition": self.condition,
            "description": self.description,
            "evidence_urls": list(self.evidence_urls),
            "evidence_files": [a.to_dict() for a in self.evidence_files],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReportItem:
        return cls(
            resource_id=str(data["resource_id"]),
            code=data.get("code") or "",
            name=data.get("name") or "",
            brand=data.get("brand") or "",
            condition=data.get("condition") or "",
            description=data.get("description") or "",
            evidence_urls=tuple(data.get("evidence_urls") or ()),
            evidence_files=tuple(Attachment.from_dict(a) for a in data.get("evidence_files") or ()),
        )


@dataclass(frozen=True)
class ReportPayload:
    """Domain data of an offline report, as captured on the device."""

    title: str
    user_id: str
    user_name: str = ""
    items: tuple[ReportItem, ...] = field(default_factory=tuple)
    general_notes: str = ""

    @property
    def attachment_count(self) -> int:
        return sum(len(item.evidence_files) for item in self.items)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "items": [item.to_dict() for item in self.items],
            "general_notes": self.general_notes,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReportPayload:
        return cls(
            title=data.get("title", ""),
            user_id=str(data.get("user_id", "")),
            user_name=data.get("user_name") or "",
            items=tuple(ReportItem.from_dict(i) for i in data.get("items") or ()),
            general_notes=data.get("general_notes") or "",
        )


@dataclass(frozen=True)
class QueuedMutation:
    """A locally created report pending transmission to the remote system.

    Attributes:
        id: Locally generated identifier, stable for the record's lifetime
        payload: Domain data including embedded attachments
        created_at: Client-side creation time, sent as the authoritative creation time
        sync_status: Lifecycle state
        synced_at: Set only on the transition to synced
        last_error: Set only on the transition to error
        claim_token: Identifies the submission holding the record while syncing
        claimed_at: When that submission claimed it
    """

    id: str
    payload: ReportPayload
    created_at: datetime
    sync_status: MutationStatus = MutationStatus.PENDING
    synced_at: datetime | None = None
    last_error: str | None = None
    claim_token: str | None = None
    claimed_at: datetime | None = None

    @classmethod
    def create(
        cls,
        payload: ReportPayload,
        created_at: datetime | None = None,
        mutation_id: str | None = None,
    ) -> QueuedMutation:
        """Factory method to create a new pending mutation."""
        return cls(
            id=mutation_id or str(uuid4()),
            payload=payload,
            created_at=created_at or utcnow(),
        )

    @property
    def is_synced(self) -> bool:
        return self.sync_status == MutationStatus.SYNCED

    def with_status(
        self,
        status: MutationStatus,
        *,
        synced_at: datetime | None = None,
        last_error: str | None = None,
    ) -> QueuedMutation:
        """Create an updated copy (immutable pattern)."""
        return replace(
            self,
            sync_status=status,
            synced_at=synced_at,
            last_error=last_error,
            claim_token=None,
            claimed_at=None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "payload": self.payload.to_dict(),
            "created_at": self.created_at.isoformat(),
            "sync_status": self.sync_status.value,
            "synced_at": self.synced_at.isoformat() if self.synced_at else None,
            "last_error": self.last_error,
            "claim_token": self.claim_token,
            "claimed_at": self.claimed_at.isoformat() if self.claimed_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QueuedMutation:
        synced_at_raw = data.get("synced_at")
        claimed_at_raw = data.get("claimed_at")
        return cls(
            id=data["id"],
            payload=ReportPayload.from_dict(data.get("payload") or {}),
            created_at=datetime.fromisoformat(data["created_at"]),
            sync_status=MutationStatus(data.get("sync_status", "pending")),
            synced_at=datetime.fromisoformat(synced_at_raw) if synced_at_raw else None,
            last_error=data.get("last_error"),
            claim_token=data.get("claim_token"),
            claimed_at=datetime.fromisoformat(claimed_at_raw) if claimed_at_raw else None,
        )
