"""
Session capability.

A session adapter attaches an identity to the per-request `ResponseContext`.
`load` must never raise for a missing or bad credential: leaving
`context.session` unset is how "not authorized" is reported.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable

from fastapi import Request

from resource_api.core.http import ResponseContext

from . import security

logger = logging.getLogger(__name__)

TOKEN_HEADER = "x-token"


class SessionAdapter(ABC):
    def __init__(self, expose: Iterable[str] = ("id",)) -> None:
        self.expose = tuple(expose)

    def session_data(self, record: dict[str, Any]) -> dict[str, Any]:
        return {name: record.get(name) for name in self.expose}

    @abstractmethod
    async def load(self, request: Request, context: ResponseContext) -> None:
        ...

    @abstractmethod
    async def create(self, request: Request, context: ResponseContext, record: dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def destroy(self, request: Request, context: ResponseContext) -> None:
        ...


def _extract_token(authorization: str | None) -> str:
    raw = (authorization or "").strip()
    parts = raw.split(" ", 1)
    if len(parts) == 2 and parts[0].strip().lower() == "bearer":
        return parts[1].strip()
    return raw


class JwtSessionAdapter(SessionAdapter):
    """
    Stateless sessions: the exposed record fields travel inside a signed JWT,
    issued in the `x-token` response header and read back from
    `Authorization: Bearer <token>`.
    """

    def __init__(
        self,
        secret: str,
        *,
        expose: Iterable[str] = ("id",),
        algorithm: str = "HS256",
        expire_minutes: int = 60,
    ) -> None:
        super().__init__(expose)
        if not secret:
            raise ValueError("Session secret is required.")
        self.secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    async def load(self, request: Request, context: ResponseContext) -> None:
        token = _extract_token(request.headers.get("authorization"))
        if not token:
            return None
        try:
            context.session = security.decode_session_token(
                token,
                secret=self.secret,
                algorithm=self.algorithm,
            )
        except security.AuthSecurityError as exc:
            # Ignored as bad token.
            logger.debug("Session token rejected: %s", exc)

    async def create(self, request: Request, context: ResponseContext, record: dict[str, Any]) -> None:
        session = self.session_data(record)
        context.session = session
        context.headers[TOKEN_HEADER] = security.build_session_token(
            session,
            secret=self.secret,
            algorithm=self.algorithm,
            expire_minutes=self.expire_minutes,
        )

    async def destroy(self, request: Request, context: ResponseContext) -> None:
        # Tokens are stateless; the client drops its copy.
        context.session = None
