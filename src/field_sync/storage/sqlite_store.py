"""SQLite store backend for durable offline data."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Collection, Iterable
from pathlib import Path
from typing import Any

import aiosqlite

from field_sync.errors import StoreError
from field_sync.storage.base import LocalStore
from field_sync.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    collection TEXT NOT NULL,
    key TEXT NOT NULL,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    PRIMARY KEY (collection, key)
);
CREATE INDEX IF NOT EXISTS idx_kv_collection ON kv(collection);
"""

# JSON paths are built from field names, so restrict them to identifiers
_FIELD_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class SQLiteStore(LocalStore):
    """SQLite-based store for durable offline data.

    One row per (collection, key) holding a JSON document. Data persists
    to disk and survives restarts; WAL mode lets several processes share
    the same file.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path).resolve()
        self._conn: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

    @property
    def db_path(self) -> Path:
        return self._db_path

    async def initialize(self) -> None:
        """Open the connection and create the schema if needed."""
        if self._conn is not None:
            return
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = await aiosqlite.connect(self._db_path)
        self._conn.row_factory = aiosqlite.Row

        await self._conn.execute("PRAGMA journal_mode=WAL")
        await self._conn.execute("PRAGMA synchronous=NORMAL")
        await self._conn.execute("PRAGMA busy_timeout=5000")

        await self._conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_version (version INTEGER PRIMARY KEY)"
        )
        await self._conn.executescript(SCHEMA)

        async with self._conn.execute("SELECT version FROM schema_version") as cursor:
            row = await cursor.fetchone()
        if row is None:
            await self._conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,)
            )
        await self._conn.commit()

    async def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _ensure_conn(self) -> aiosqlite.Connection:
        """Ensure the connection is available."""
        if self._conn is None:
            raise StoreError("Database not initialized. Call initialize() first.")
        return self._conn

    # ========== Reads ==========

    async def get(self, collection: str, key: str) -> dict[str, Any] | None:
        conn = self._ensure_conn()
        async with conn.execute(
            "SELECT value FROM kv WHERE collection = ? AND key = ?", (collection, key)
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return _decode(row["value"], collection, key)

    async def get_all(self, collection: str) -> list[dict[str, Any]]:
        conn = self._ensure_conn()
        async with conn.execute(
            "SELECT key, value FROM kv WHERE collection = ? ORDER BY rowid", (collection,)
        ) as cursor:
            rows = await cursor.fetchall()
        return [_decode(row["value"], collection, row["key"]) for row in rows]

    async def count(self, collection: str) -> int:
        conn = self._ensure_conn()
        async with conn.execute(
            "SELECT COUNT(*) AS n FROM kv WHERE collection = ?", (collection,)
        ) as cursor:
            row = await cursor.fetchone()
        return int(row["n"]) if row else 0

    async def collections(self) -> list[str]:
        conn = self._ensure_conn()
        async with conn.execute(
            "SELECT DISTINCT collection FROM kv ORDER BY collection"
        ) as cursor:
            rows = await cursor.fetchall()
        return [row["collection"] for row in rows]

    # ========== Writes ==========

    async def put(self, collection: str, key: str, value: dict[str, Any]) -> None:
        conn = self._ensure_conn()
        async with self._write_lock:
            await conn.execute(
                """INSERT INTO kv (collection, key, value, updated_at)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(collection, key)
                   DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at""",
                (collection, key, json.dumps(value), utcnow().isoformat()),
            )
            await conn.commit()

    async def delete(self, collection: str, key: str) -> bool:
        conn = self._ensure_conn()
        async with self._write_lock:
            cursor = await conn.execute(
                "DELETE FROM kv WHERE collection = ? AND key = ?", (collection, key)
            )
            await conn.commit()
        return cursor.rowcount > 0

    async def clear(self, collection: str) -> int:
        conn = self._ensure_conn()
        async with self._write_lock:
            cursor = await conn.execute("DELETE FROM kv WHERE collection = ?", (collection,))
            await conn.commit()
        return cursor.rowcount

    async def replace_all(
        self, collection: str, items: Iterable[tuple[str, dict[str, Any]]]
    ) -> int:
        conn = self._ensure_conn()
        now = utcnow().isoformat()
        rows = [(collection, key, json.dumps(value), now) for key, value in items]

        async with self._write_lock:
            try:
                await conn.execute("DELETE FROM kv WHERE collection = ?", (collection,))
                await conn.executemany(
                    """INSERT INTO kv (collection, key, value, updated_at) VALUES (?, ?, ?, ?)
                       ON CONFLICT(collection, key)
                       DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at""",
                    rows,
                )
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise
        return len(rows)

    async def compare_and_set(
        self,
        collection: str,
        key: str,
        field: str,
        expected: Collection[Any],
        updates: dict[str, Any],
    ) -> bool:
        if not expected:
            return False
        for name in (field, *updates):
            if not _FIELD_PATTERN.match(name):
                raise ValueError(f"Invalid field name: {name!r}")

        set_parts: list[str] = []
        params: list[Any] = []
        for name, value in updates.items():
            if isinstance(value, dict | list):
                set_parts.append(f"'$.{name}', json(?)")
                params.append(json.dumps(value))
            else:
                set_parts.append(f"'$.{name}', ?")
                params.append(value)

        value_expr = f"json_set(value, {', '.join(set_parts)})" if set_parts else "value"
        placeholders = ", ".join("?" for _ in expected)
        sql = (
            f"UPDATE kv SET value = {value_expr}, updated_at = ? "
            f"WHERE collection = ? AND key = ? "
            f"AND json_extract(value, '$.{field}') IN ({placeholders})"
        )

        conn = self._ensure_conn()
        async with self._write_lock:
            cursor = await conn.execute(
                sql,
                (*params, utcnow().isoformat(), collection, key, *expected),
            )
            await conn.commit()
        return cursor.rowcount > 0


def _decode(raw: str, collection: str, key: str) -> dict[str, Any]:
    """Decode a stored JSON document."""
    try:
        value = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        raise StoreError(f"Corrupt value in {collection}/{key}") from e
    if not isinstance(value, dict):
        raise StoreError(f"Corrupt value in {collection}/{key}: expected an object")
    return value
