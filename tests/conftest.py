"""Pytest configuration and fixtures."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from field_sync.connectivity import ConnectivitySignal
from field_sync.core.mutation import Attachment, ReportItem, ReportPayload
from field_sync.storage.memory_store import InMemoryStore
from field_sync.storage.sqlite_store import SQLiteStore
from field_sync.utils.config import reset_config
from field_sync.utils.timeutils import MILLIS_PER_HOUR

# 2026-01-15T10:00:00Z
START_MILLIS = 1_768_471_200_000


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, start: int = START_MILLIS) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, *, hours: float = 0, seconds: float = 0) -> None:
        self.now += int(hours * MILLIS_PER_HOUR + seconds * 1000)


def make_resources(*ids: str) -> list[dict[str, Any]]:
    """Remote list items keyed by resource_id."""
    return [
        {"resource_id": rid, "code": f"AF-{rid}", "name": f"Resource {rid}", "status": "active"}
        for rid in ids
    ]


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep tests away from the user's ~/.fieldsync and FIELD_SYNC_* variables."""
    for name in list(os.environ):
        if name.startswith("FIELD_SYNC_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("FIELD_SYNC_DIR", str(tmp_path / "fieldsync-home"))
    reset_config()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest_asyncio.fixture
async def sqlite_store(tmp_path: Path) -> AsyncGenerator[SQLiteStore, None]:
    """Create a temporary SQLite store."""
    db = SQLiteStore(tmp_path / "test.db")
    await db.initialize()
    yield db
    await db.close()


@pytest.fixture
def connectivity() -> ConnectivitySignal:
    return ConnectivitySignal(online=True)


@pytest.fixture
def remote() -> AsyncMock:
    """Remote surface double: returns three resources and creates reports."""
    mock = AsyncMock()
    mock.list_resources.return_value = make_resources("1", "2", "3")
    mock.create_fixed_asset_report.return_value = {"id": "remote-1", "title": "Inspection"}
    return mock


@pytest.fixture
def sample_payload() -> ReportPayload:
    return ReportPayload(
        title="Quarterly inspection",
        user_id="user-7",
        user_name="Field Tech",
        items=(
            ReportItem(
                resource_id="1",
                code="AF-1",
                name="Drill",
                brand="Bosch",
                condition="good",
                description="Minor wear",
                evidence_urls=("https://cdn.example.com/a.jpg",),
                evidence_files=(Attachment("photo.jpg", "image/jpeg", b"\xff\xd8jpeg"),),
            ),
            ReportItem(resource_id="2", code="AF-2", name="Generator"),
        ),
        general_notes="All checked",
    )


@pytest.fixture
def created_at() -> datetime:
    return datetime(2026, 1, 10, 8, 30, tzinfo=UTC)
