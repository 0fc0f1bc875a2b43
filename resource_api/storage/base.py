"""
Database capability consumed by the resource controller.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

Record = dict[str, Any]

ID_FIELD = "id"


class DatabaseAdapter(ABC):
    """
    Persistence for JSON records grouped by logical table name.

    Not-found is signalled by returning `None` (or `False` for `delete`).
    Anything raised is treated as an internal error by callers.
    """

    @abstractmethod
    async def insert(self, table: str, record: Record) -> Record:
        """Store a new record and return it with `id` assigned."""

    @abstractmethod
    async def fetch_by_id(self, table: str, record_id: str) -> Record | None:
        ...

    @abstractmethod
    async def fetch_by_field(self, table: str, field: str, value: Any) -> Record | None:
        """Return the first record whose `field` equals `value`."""

    @abstractmethod
    async def list(self, table: str) -> list[Record]:
        """All records of `table` in insertion order."""

    @abstractmethod
    async def patch(self, table: str, record_id: str, fields: Record) -> Record | None:
        """Merge `fields` onto the stored record and return the result."""

    @abstractmethod
    async def replace(self, table: str, record_id: str, record: Record) -> Record | None:
        """Substitute the stored record; `id` is kept from the stored one."""

    @abstractmethod
    async def delete(self, table: str, record_id: str) -> bool:
        ...

    async def open(self) -> None:
        return None

    async def close(self) -> None:
        return None
