"""
In-process storage, used when DATABASE_URL is not set and in tests.
"""

from __future__ import annotations

import copy
import uuid
from typing import Any

from .base import ID_FIELD, DatabaseAdapter, Record


def json_equal(left: Any, right: Any) -> bool:
    """
    Equality as JSONB sees it: booleans never equal numbers, while numbers
    compare by value (1 == 1.0).
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if isinstance(left, dict) and isinstance(right, dict):
        return left.keys() == right.keys() and all(json_equal(left[k], right[k]) for k in left)
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(json_equal(a, b) for a, b in zip(left, right))
    return type(left) is type(right) and left == right


class MemoryDatabaseAdapter(DatabaseAdapter):
    def __init__(self) -> None:
        # dicts keep insertion order, which is the list order.
        self._tables: dict[str, dict[str, Record]] = {}

    def _table(self, table: str) -> dict[str, Record]:
        return self._tables.setdefault(table, {})

    async def insert(self, table: str, record: Record) -> Record:
        record_id = uuid.uuid4().hex
        stored = copy.deepcopy(record)
        stored[ID_FIELD] = record_id
        self._table(table)[record_id] = stored
        return copy.deepcopy(stored)

    async def fetch_by_id(self, table: str, record_id: str) -> Record | None:
        stored = self._table(table).get(record_id)
        return copy.deepcopy(stored) if stored is not None else None

    async def fetch_by_field(self, table: str, field: str, value: Any) -> Record | None:
        for stored in self._table(table).values():
            if field in stored and json_equal(stored[field], value):
                return copy.deepcopy(stored)
        return None

    async def list(self, table: str) -> list[Record]:
        return [copy.deepcopy(stored) for stored in self._table(table).values()]

    async def patch(self, table: str, record_id: str, fields: Record) -> Record | None:
        stored = self._table(table).get(record_id)
        if stored is None:
            return None
        stored.update(copy.deepcopy(fields))
        stored[ID_FIELD] = record_id
        return copy.deepcopy(stored)

    async def replace(self, table: str, record_id: str, record: Record) -> Record | None:
        rows = self._table(table)
        if record_id not in rows:
            return None
        stored = copy.deepcopy(record)
        stored[ID_FIELD] = record_id
        rows[record_id] = stored
        return copy.deepcopy(stored)

    async def delete(self, table: str, record_id: str) -> bool:
        return self._table(table).pop(record_id, None) is not None
