"""Tests for the durable local store backends (memory and SQLite)."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Iterator
from pathlib import Path
from typing import Any

import pytest

from field_sync.errors import StoreError
from field_sync.storage.base import LocalStore
from field_sync.storage.factory import create_store
from field_sync.storage.memory_store import InMemoryStore
from field_sync.storage.sqlite_store import SQLiteStore
from field_sync.utils.config import Config


@pytest.fixture(params=["memory", "sqlite"])
async def backend(request: pytest.FixtureRequest, tmp_path: Path) -> AsyncGenerator[LocalStore, None]:
    """Each test runs against both backends."""
    db: LocalStore = InMemoryStore() if request.param == "memory" else SQLiteStore(tmp_path / "kv.db")
    await db.initialize()
    yield db
    await db.close()


class TestBasicOperations:
    """get / put / delete / count / collections."""

    async def test_put_and_get(self, backend: LocalStore) -> None:
        await backend.put("reports", "r1", {"id": "r1", "n": 1})
        assert await backend.get("reports", "r1") == {"id": "r1", "n": 1}

    async def test_get_missing_returns_none(self, backend: LocalStore) -> None:
        assert await backend.get("reports", "nope") is None

    async def test_put_is_upsert(self, backend: LocalStore) -> None:
        await backend.put("reports", "r1", {"v": 1})
        await backend.put("reports", "r1", {"v": 2})
        assert await backend.get("reports", "r1") == {"v": 2}
        assert await backend.count("reports") == 1

    async def test_get_all_in_insertion_order(self, backend: LocalStore) -> None:
        for key in ("b", "a", "c"):
            await backend.put("replica", key, {"k": key})
        assert [v["k"] for v in await backend.get_all("replica")] == ["b", "a", "c"]

    async def test_collections_are_isolated(self, backend: LocalStore) -> None:
        await backend.put("replica", "x", {"from": "replica"})
        await backend.put("reports", "x", {"from": "reports"})
        assert (await backend.get("replica", "x"))["from"] == "replica"
        assert sorted(await backend.collections()) == ["replica", "reports"]

    async def test_delete(self, backend: LocalStore) -> None:
        await backend.put("reports", "r1", {})
        assert await backend.delete("reports", "r1") is True
        assert await backend.delete("reports", "r1") is False
        assert await backend.get("reports", "r1") is None

    async def test_clear(self, backend: LocalStore) -> None:
        await backend.put("cache:images", "a", {})
        await backend.put("cache:images", "b", {})
        assert await backend.clear("cache:images") == 2
        assert await backend.count("cache:images") == 0
        assert "cache:images" not in await backend.collections()

    async def test_returned_values_are_copies(self, backend: LocalStore) -> None:
        await backend.put("reports", "r1", {"items": [1]})
        value = await backend.get("reports", "r1")
        assert value is not None
        value["items"].append(2)
        assert await backend.get("reports", "r1") == {"items": [1]}


class TestReplaceAll:
    """Atomic whole-collection replacement."""

    async def test_replaces_content(self, backend: LocalStore) -> None:
        await backend.put("replica", "A", {"id": "A"})
        await backend.put("replica", "B", {"id": "B"})

        written = await backend.replace_all("replica", [("B", {"id": "B", "v": 2}), ("C", {"id": "C"})])

        assert written == 2
        assert await backend.get("replica", "A") is None
        assert await backend.get("replica", "B") == {"id": "B", "v": 2}
        assert await backend.get("replica", "C") == {"id": "C"}

    async def test_failing_iterator_leaves_collection_untouched(self, backend: LocalStore) -> None:
        await backend.put("replica", "A", {"id": "A"})

        def broken() -> Iterator[tuple[str, dict[str, Any]]]:
            yield ("B", {"id": "B"})
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await backend.replace_all("replica", broken())

        assert await backend.get_all("replica") == [{"id": "A"}]

    async def test_replace_with_empty_clears(self, backend: LocalStore) -> None:
        await backend.put("replica", "A", {"id": "A"})
        assert await backend.replace_all("replica", []) == 0
        assert await backend.count("replica") == 0

    async def test_does_not_touch_other_collections(self, backend: LocalStore) -> None:
        await backend.put("reports", "r1", {"id": "r1"})
        await backend.replace_all("replica", [("A", {"id": "A"})])
        assert await backend.get("reports", "r1") == {"id": "r1"}


class TestCompareAndSet:
    """Conditional field updates."""

    async def test_applies_when_expected_matches(self, backend: LocalStore) -> None:
        await backend.put("reports", "r1", {"sync_status": "pending", "last_error": "old"})

        applied = await backend.compare_and_set(
            "reports", "r1", "sync_status", ["pending", "error"],
            {"sync_status": "syncing", "last_error": None},
        )

        assert applied is True
        assert await backend.get("reports", "r1") == {"sync_status": "syncing", "last_error": None}

    async def test_rejects_when_value_differs(self, backend: LocalStore) -> None:
        await backend.put("reports", "r1", {"sync_status": "syncing"})

        applied = await backend.compare_and_set(
            "reports", "r1", "sync_status", ["pending", "error"], {"sync_status": "syncing"}
        )

        assert applied is False
        assert await backend.get("reports", "r1") == {"sync_status": "syncing"}

    async def test_missing_key_is_rejected(self, backend: LocalStore) -> None:
        assert await backend.compare_and_set("reports", "nope", "s", ["a"], {"s": "b"}) is False

    async def test_second_claim_loses(self, backend: LocalStore) -> None:
        await backend.put("reports", "r1", {"sync_status": "pending"})
        first = await backend.compare_and_set(
            "reports", "r1", "sync_status", ["pending"], {"sync_status": "syncing"}
        )
        second = await backend.compare_and_set(
            "reports", "r1", "sync_status", ["pending"], {"sync_status": "syncing"}
        )
        assert (first, second) == (True, False)

    async def test_preserves_other_fields(self, backend: LocalStore) -> None:
        await backend.put("reports", "r1", {"sync_status": "error", "payload": {"title": "t"}})
        await backend.compare_and_set(
            "reports", "r1", "sync_status", ["error"], {"sync_status": "synced"}
        )
        assert (await backend.get("reports", "r1"))["payload"] == {"title": "t"}


class TestSQLiteSpecifics:
    """Behavior only the SQLite backend has."""

    async def test_data_survives_reopen(self, tmp_path: Path) -> None:
        path = tmp_path / "persist.db"
        async with SQLiteStore(path) as db:
            await db.put("app_config", "last_auto_sync", {"value": 42})

        async with SQLiteStore(path) as db:
            assert await db.get("app_config", "last_auto_sync") == {"value": 42}

    async def test_uninitialized_raises(self, tmp_path: Path) -> None:
        db = SQLiteStore(tmp_path / "x.db")
        with pytest.raises(StoreError, match="not initialized"):
            await db.get("replica", "a")

    async def test_rejects_unsafe_field_names(self, sqlite_store: SQLiteStore) -> None:
        await sqlite_store.put("reports", "r1", {"s": "a"})
        with pytest.raises(ValueError, match="Invalid field name"):
            await sqlite_store.compare_and_set("reports", "r1", "s') OR 1=1 --", ["a"], {})

    async def test_corrupt_row_raises_store_error(self, sqlite_store: SQLiteStore) -> None:
        conn = sqlite_store._ensure_conn()
        await conn.execute(
            "INSERT INTO kv (collection, key, value, updated_at) VALUES ('replica', 'bad', '{not json', '')"
        )
        await conn.commit()
        with pytest.raises(StoreError, match="Corrupt"):
            await sqlite_store.get("replica", "bad")


class TestCreateStore:
    """Backend selection from configuration."""

    async def test_memory_backend(self) -> None:
        db = await create_store(Config(storage_backend="memory"))
        assert isinstance(db, InMemoryStore)

    async def test_sqlite_backend(self, tmp_path: Path) -> None:
        db = await create_store(Config(storage_backend="sqlite", sqlite_path=str(tmp_path / "f.db")))
        try:
            assert isinstance(db, SQLiteStore)
            assert (tmp_path / "f.db").exists()
        finally:
            await db.close()

    async def test_unknown_backend_falls_back_to_sqlite(self, tmp_path: Path) -> None:
        db = await create_store(Config(storage_backend="redis", sqlite_path=str(tmp_path / "f.db")))
        try:
            assert isinstance(db, SQLiteStore)
        finally:
            await db.close()
