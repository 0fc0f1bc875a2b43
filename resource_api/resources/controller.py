"""
Resource controller: one request in, one CRUD operation out.

Every operation is a strict sequence of awaited adapter calls:

    authorize -> inbound shaper -> database -> outbound shaper -> result

Failures are raised as `ResourceError` subclasses and translated by the
router. Nothing is retried here.

Known gap: the unique-field check in `create` and the insert/update that
follows are separate calls, so two concurrent creates with the same unique
value can both pass the check. Closing it needs an atomic conditional insert
on `DatabaseAdapter`.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from fastapi import Request

from resource_api.core.errors import ConflictError, NotFoundError, UnauthorizedError
from resource_api.core.http import ResponseContext
from resource_api.storage.base import ID_FIELD, Record

from .config import Capabilities, ResourceConfig
from .shaping import RecordShaper

logger = logging.getLogger(__name__)


class Operation(str, enum.Enum):
    CREATE = "create"
    LIST = "list"
    SHOW = "show"
    UPDATE = "update"
    REPLACE = "replace"
    DELETE = "delete"
    OPTIONS = "options"


@dataclass(frozen=True)
class ResourceResult:
    status: int
    body: Any = None


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ResourceController:
    def __init__(
        self,
        config: ResourceConfig,
        capabilities: Capabilities,
        *,
        shaper: RecordShaper | None = None,
        clock: Callable[[], str] = utc_now,
    ) -> None:
        self._config = config
        self.capabilities = capabilities
        self.shaper = shaper or RecordShaper()
        self.clock = clock

    @property
    def config(self) -> ResourceConfig:
        return self._config

    def configure(self, **changes: Any) -> ResourceConfig:
        """
        Revise the configuration between requests, e.g.
        `controller.configure(unique=("username",), update_on_conflict=True)`.
        """
        self._config = dataclasses.replace(self._config, **changes)
        return self._config

    async def handle(
        self,
        operation: Operation,
        request: Request,
        context: ResponseContext,
        *,
        record_id: str | None = None,
        body: Record | None = None,
    ) -> ResourceResult:
        if operation is Operation.CREATE:
            return await self.create(request, context, body or {})
        elif operation is Operation.LIST:
            return await self.list(request, context)
        elif operation is Operation.SHOW:
            return await self.show(request, context, record_id)
        elif operation is Operation.UPDATE:
            return await self.update(request, context, record_id, body or {})
        elif operation is Operation.REPLACE:
            return await self.replace(request, context, record_id, body or {})
        elif operation is Operation.DELETE:
            return await self.delete(request, context, record_id)
        elif operation is Operation.OPTIONS:
            return ResourceResult(204)
        raise ValueError(f"Unsupported operation: {operation}")

    async def authorize(self, request: Request, context: ResponseContext) -> None:
        session = self.capabilities.session
        if session is None:
            return None
        await session.load(request, context)
        if context.session is None:
            raise UnauthorizedError()

    # Record bookkeeping

    def _incoming(self, config: ResourceConfig, body: Record) -> Record:
        # Clients never set the identifier or the timestamps.
        shaped = self.shaper.inbound(dict(body))
        reserved = config.reserved_fields(ID_FIELD)
        return {k: v for k, v in shaped.items() if k not in reserved}

    def _outgoing(self, record: Record) -> Record:
        return self.shaper.outbound(record)

    async def _fetch_existing(self, config: ResourceConfig, record_id: str | None) -> Record:
        if not record_id:
            raise NotFoundError()
        existing = await self.capabilities.database.fetch_by_id(config.table, record_id)
        if existing is None:
            raise NotFoundError()
        return existing

    async def _find_conflict(self, config: ResourceConfig, candidate: Record) -> Record | None:
        database = self.capabilities.database
        for field in config.unique:
            if field not in candidate:
                continue
            existing = await database.fetch_by_field(config.table, field, candidate[field])
            if existing is not None:
                return existing
        return None

    async def _patch(self, config: ResourceConfig, record_id: str, fields: Record) -> Record:
        if config.timestamps is not None:
            fields[config.timestamps.updated] = self.clock()
        stored = await self.capabilities.database.patch(config.table, record_id, fields)
        if stored is None:
            raise NotFoundError()
        return stored

    # Operations

    async def create(self, request: Request, context: ResponseContext, body: Record) -> ResourceResult:
        config = self.config
        await self.authorize(request, context)
        candidate = self._incoming(config, body)

        if config.unique:
            existing = await self._find_conflict(config, candidate)
            if existing is not None:
                if not config.update_on_conflict:
                    logger.warning("Create on %s rejected: unique field conflict", config.table)
                    raise ConflictError()
                logger.debug("Create on %s updates %s on conflict", config.table, existing[ID_FIELD])
                stored = await self._patch(config, existing[ID_FIELD], candidate)
                return ResourceResult(200, self._outgoing(stored))

        if config.timestamps is not None:
            now = self.clock()
            candidate[config.timestamps.created] = now
            candidate[config.timestamps.updated] = now
        stored = await self.capabilities.database.insert(config.table, candidate)
        logger.debug("Created %s in %s", stored.get(ID_FIELD), config.table)
        return ResourceResult(201, self._outgoing(stored))

    async def show(self, request: Request, context: ResponseContext, record_id: str | None) -> ResourceResult:
        config = self.config
        await self.authorize(request, context)
        existing = await self._fetch_existing(config, record_id)
        return ResourceResult(200, self._outgoing(existing))

    async def list(self, request: Request, context: ResponseContext) -> ResourceResult:
        config = self.config
        await self.authorize(request, context)
        records = await self.capabilities.database.list(config.table)
        return ResourceResult(200, [self._outgoing(record) for record in records])

    async def update(
        self,
        request: Request,
        context: ResponseContext,
        record_id: str | None,
        body: Record,
    ) -> ResourceResult:
        config = self.config
        await self.authorize(request, context)
        existing = await self._fetch_existing(config, record_id)
        fields = self._incoming(config, body)
        stored = await self._patch(config, existing[ID_FIELD], fields)
        return ResourceResult(200, self._outgoing(stored))

    async def replace(
        self,
        request: Request,
        context: ResponseContext,
        record_id: str | None,
        body: Record,
    ) -> ResourceResult:
        config = self.config
        await self.authorize(request, context)
        existing = await self._fetch_existing(config, record_id)
        record = self._incoming(config, body)
        record[ID_FIELD] = existing[ID_FIELD]
        if config.timestamps is not None:
            created = config.timestamps.created
            if created in existing:
                record[created] = existing[created]
            record[config.timestamps.updated] = self.clock()

        stored = await self.capabilities.database.replace(config.table, existing[ID_FIELD], record)
        if stored is None:
            raise NotFoundError()
        return ResourceResult(200, self._outgoing(stored))

    async def delete(self, request: Request, context: ResponseContext, record_id: str | None) -> ResourceResult:
        config = self.config
        await self.authorize(request, context)
        existing = await self._fetch_existing(config, record_id)
        if not await self.capabilities.database.delete(config.table, existing[ID_FIELD]):
            raise NotFoundError()
        return ResourceResult(204)
