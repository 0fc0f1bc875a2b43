"""
Resource configuration and the capability bundle a controller is built with.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from resource_api.auth.passwords import PasswordAdapter
from resource_api.auth.sessions import SessionAdapter
from resource_api.storage.base import DatabaseAdapter


@dataclass(frozen=True)
class Timestamps:
    created: str = "createdAt"
    updated: str = "updatedAt"


@dataclass(frozen=True)
class ResourceConfig:
    """
    Settings for one resource. Frozen: revise through
    `ResourceController.configure`, which swaps in a new value between requests.
    """

    table: str
    timestamps: Timestamps | None = None
    unique: tuple[str, ...] = ()
    update_on_conflict: bool = False

    def __post_init__(self) -> None:
        if not self.table:
            raise ValueError("Resource table is required.")
        # Accept any iterable of names from callers.
        object.__setattr__(self, "unique", tuple(self.unique))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ResourceConfig":
        timestamps = data.get("timestamps")
        return cls(
            table=str(data.get("table") or data.get("name") or ""),
            timestamps=Timestamps(**timestamps) if timestamps else None,
            unique=tuple(data.get("unique") or ()),
            update_on_conflict=bool(data.get("update_on_conflict", False)),
        )

    def reserved_fields(self, id_field: str) -> set[str]:
        fields = {id_field}
        if self.timestamps is not None:
            fields.update((self.timestamps.created, self.timestamps.updated))
        return fields


@dataclass(frozen=True)
class Capabilities:
    database: DatabaseAdapter
    session: SessionAdapter | None = None
    password: PasswordAdapter | None = None

    def without_session(self) -> "Capabilities":
        return Capabilities(database=self.database, session=None, password=self.password)
