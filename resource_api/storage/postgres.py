"""
PostgreSQL storage (raw SQL over asyncpg).

Every logical table lives in one `resource_records` table; the record body is
a JSONB document and `seq` keeps insertion order for listing.
"""

from __future__ import annotations

import json
import uuid
from typing import Any

import asyncpg

from resource_api.core import db

from .base import ID_FIELD, DatabaseAdapter, Record

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS resource_records (
  seq bigserial,
  table_name text NOT NULL,
  id text NOT NULL,
  data jsonb NOT NULL,
  PRIMARY KEY (table_name, id)
)
"""


def _json_arg(value: Any) -> str:
    """
    asyncpg does not encode Python values for json/jsonb parameters by default.
    We pass JSON as a string and cast to jsonb in SQL.
    """
    return json.dumps(value, ensure_ascii=True)


def _body(record: Record) -> Record:
    return {k: v for k, v in record.items() if k != ID_FIELD}


def _row_to_record(row: dict[str, Any] | None) -> Record | None:
    if row is None:
        return None
    data = row["data"]
    if isinstance(data, str):
        data = json.loads(data)
    record = dict(data)
    record[ID_FIELD] = str(row["id"])
    return record


class PostgresDatabaseAdapter(DatabaseAdapter):
    """
    Either pass an existing pool or a URL; with a URL the pool is created by
    `open()` (the app calls it on startup).
    """

    def __init__(self, pool: asyncpg.Pool | None = None, *, url: str = "") -> None:
        self._pool_ref = pool
        self._url = url

    @property
    def _pool(self) -> asyncpg.Pool:
        if self._pool_ref is None:
            raise RuntimeError("DB pool is not initialized. Call open() on startup.")
        return self._pool_ref

    async def open(self) -> None:
        if self._pool_ref is None:
            self._pool_ref = await db.create_pool(self._url)
        await self.ensure_schema()

    async def ensure_schema(self) -> None:
        await db.execute(self._pool, SCHEMA_SQL)

    async def close(self) -> None:
        if self._pool_ref is None:
            return None
        await self._pool_ref.close()
        self._pool_ref = None

    async def insert(self, table: str, record: Record) -> Record:
        row = await db.fetch_one(
            self._pool,
            """
            INSERT INTO resource_records (table_name, id, data)
            VALUES ($1, $2, $3::jsonb)
            RETURNING id, data
            """,
            table,
            uuid.uuid4().hex,
            _json_arg(_body(record)),
        )
        if row is None:
            raise RuntimeError("Failed to insert record.")
        return _row_to_record(row)

    async def fetch_by_id(self, table: str, record_id: str) -> Record | None:
        row = await db.fetch_one(
            self._pool,
            """
            SELECT id, data
            FROM resource_records
            WHERE table_name = $1
              AND id = $2
            """,
            table,
            record_id,
        )
        return _row_to_record(row)

    async def fetch_by_field(self, table: str, field: str, value: Any) -> Record | None:
        row = await db.fetch_one(
            self._pool,
            """
            SELECT id, data
            FROM resource_records
            WHERE table_name = $1
              AND data -> $2 = $3::jsonb
            ORDER BY seq ASC
            LIMIT 1
            """,
            table,
            field,
            _json_arg(value),
        )
        return _row_to_record(row)

    async def list(self, table: str) -> list[Record]:
        rows = await db.fetch_all(
            self._pool,
            """
            SELECT id, data
            FROM resource_records
            WHERE table_name = $1
            ORDER BY seq ASC
            """,
            table,
        )
        return [_row_to_record(row) for row in rows]

    async def patch(self, table: str, record_id: str, fields: Record) -> Record | None:
        row = await db.fetch_one(
            self._pool,
            """
            UPDATE resource_records
            SET data = data || $3::jsonb
            WHERE table_name = $1
              AND id = $2
            RETURNING id, data
            """,
            table,
            record_id,
            _json_arg(_body(fields)),
        )
        return _row_to_record(row)

    async def replace(self, table: str, record_id: str, record: Record) -> Record | None:
        row = await db.fetch_one(
            self._pool,
            """
            UPDATE resource_records
            SET data = $3::jsonb
            WHERE table_name = $1
              AND id = $2
            RETURNING id, data
            """,
            table,
            record_id,
            _json_arg(_body(record)),
        )
        return _row_to_record(row)

    async def delete(self, table: str, record_id: str) -> bool:
        row = await db.fetch_one(
            self._pool,
            """
            DELETE FROM resource_records
            WHERE table_name = $1
              AND id = $2
            RETURNING id
            """,
            table,
            record_id,
        )
        return row is not None
