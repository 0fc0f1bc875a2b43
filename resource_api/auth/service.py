"""
Account business logic.

Accounts are plain records in a resource table. Registration goes through a
`ResourceController` (so the username uniqueness check and timestamps behave
like any other resource); this module adds password hashing and issues
sessions.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Request

from resource_api.core.errors import UnauthorizedError
from resource_api.core.http import ResponseContext
from resource_api.resources.config import Capabilities, ResourceConfig, Timestamps
from resource_api.resources.controller import ResourceController
from resource_api.resources.shaping import FieldFilter
from resource_api.storage.base import ID_FIELD

from . import schemas

logger = logging.getLogger(__name__)

PASSWORD_HASH_FIELD = "password_hash"


def normalize_username(username: str) -> str:
    return (username or "").strip().lower()


class AccountService:
    def __init__(self, capabilities: Capabilities, *, table: str = "users") -> None:
        if capabilities.session is None or capabilities.password is None:
            raise ValueError("Accounts need both a session and a password adapter.")
        self.sessions = capabilities.session
        self.passwords = capabilities.password
        self.database = capabilities.database
        # Registration is public, so the account controller runs ungated.
        self.accounts = ResourceController(
            ResourceConfig(table=table, timestamps=Timestamps(), unique=("username",)),
            capabilities.without_session(),
            shaper=FieldFilter(drop_inbound={"password"}, drop_outbound={PASSWORD_HASH_FIELD}),
        )

    @property
    def table(self) -> str:
        return self.accounts.config.table

    def _public(self, record: dict[str, Any]) -> dict[str, Any]:
        return self.accounts.shaper.outbound(record)

    async def register(
        self,
        payload: schemas.RegisterRequest,
        *,
        request: Request,
        context: ResponseContext,
    ) -> dict[str, Any]:
        record = {
            "username": normalize_username(payload.username),
            PASSWORD_HASH_FIELD: self.passwords.hash(payload.password),
        }
        # Raises ConflictError when the username is taken.
        result = await self.accounts.create(request, context, record)
        await self.sessions.create(request, context, result.body)
        logger.info("Registered account %s", result.body.get(ID_FIELD))
        return result.body

    async def login(
        self,
        payload: schemas.LoginRequest,
        *,
        request: Request,
        context: ResponseContext,
    ) -> dict[str, Any]:
        user = await self.database.fetch_by_field(self.table, "username", normalize_username(payload.username))
        if user is None:
            raise UnauthorizedError("Invalid username or password.")

        if not self.passwords.verify(payload.password, str(user.get(PASSWORD_HASH_FIELD) or "")):
            raise UnauthorizedError("Invalid username or password.")

        await self.sessions.create(request, context, user)
        return self._public(user)

    async def logout(self, *, request: Request, context: ResponseContext) -> None:
        await self.sessions.destroy(request, context)

    async def me(self, *, request: Request, context: ResponseContext) -> dict[str, Any]:
        await self.sessions.load(request, context)
        if context.session is None:
            raise UnauthorizedError()

        user_id = str(context.session.get(ID_FIELD) or "")
        user = await self.database.fetch_by_id(self.table, user_id) if user_id else None
        if user is None:
            raise UnauthorizedError("User not found.")
        return self._public(user)
