from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient
from fastapi import Request

from resource_api.auth import security
from resource_api.core.settings import Settings
from resource_api.main import create_app
from resource_api.storage.memory import MemoryDatabaseAdapter

TEST_SECRET = "test-secret"

TASKS = {
    "name": "tasks",
    "table": "Tasks",
    "timestamps": {"created": "createdAt", "updated": "updatedAt"},
    "unique": [],
    "update_on_conflict": False,
    "protected": False,
    "hidden": ["password"],
}


class TickingClock:
    """Returns a strictly increasing UTC timestamp on every call."""

    def __init__(self) -> None:
        self.current = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> str:
        self.current += timedelta(seconds=1)
        return self.current.isoformat()


class RecordingDatabase(MemoryDatabaseAdapter):
    """Memory adapter that remembers which operations were called."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[str] = []

    async def insert(self, table, record):
        self.calls.append("insert")
        return await super().insert(table, record)

    async def fetch_by_id(self, table, record_id):
        self.calls.append("fetch_by_id")
        return await super().fetch_by_id(table, record_id)

    async def fetch_by_field(self, table, field, value):
        self.calls.append("fetch_by_field")
        return await super().fetch_by_field(table, field, value)

    async def list(self, table):
        self.calls.append("list")
        return await super().list(table)

    async def patch(self, table, record_id, fields):
        self.calls.append("patch")
        return await super().patch(table, record_id, fields)

    async def replace(self, table, record_id, record):
        self.calls.append("replace")
        return await super().replace(table, record_id, record)

    async def delete(self, table, record_id):
        self.calls.append("delete")
        return await super().delete(table, record_id)

    @property
    def writes(self) -> list[str]:
        return [c for c in self.calls if c in ("insert", "patch", "replace", "delete")]


def make_request(headers: dict[str, str] | None = None, method: str = "GET") -> Request:
    scope = {
        "type": "http",
        "method": method,
        "path": "/",
        "query_string": b"",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
    }
    return Request(scope)


def session_token(data: dict[str, Any], secret: str = TEST_SECRET) -> str:
    return security.build_session_token(data, secret=secret)


def bearer(data: dict[str, Any], secret: str = TEST_SECRET) -> dict[str, str]:
    return {"Authorization": f"Bearer {session_token(data, secret)}"}


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "jwt_secret": TEST_SECRET,
        "bcrypt_rounds": 4,
        "resources": [dict(TASKS)],
        "log_level": "DEBUG",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def database() -> RecordingDatabase:
    return RecordingDatabase()


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def client(database: RecordingDatabase, clock: TickingClock):
    app = create_app(make_settings(), database=database)
    app.state.controllers["tasks"].clock = clock
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def protected_client(database: RecordingDatabase):
    app = create_app(
        make_settings(resources=[dict(TASKS, protected=True)]),
        database=database,
    )
    with TestClient(app) as test_client:
        yield test_client
