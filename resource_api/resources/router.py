"""
FastAPI routing for one resource controller.

The verb/path table is fixed; each route hands its `Operation` to
`ResourceController.handle` and turns the result (or error) into a response.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import Response

from resource_api.core.errors import BadRequestError, ResourceError
from resource_api.core.http import ResponseContext, empty_response, internal_error_response, json_response

from .controller import Operation, ResourceController

COLLECTION = "collection"
ITEM = "item"

ROUTES: list[tuple[str, str, Operation]] = [
    ("POST", COLLECTION, Operation.CREATE),
    ("GET", COLLECTION, Operation.LIST),
    ("GET", ITEM, Operation.SHOW),
    ("PATCH", ITEM, Operation.UPDATE),
    ("PUT", ITEM, Operation.REPLACE),
    ("DELETE", ITEM, Operation.DELETE),
    ("OPTIONS", COLLECTION, Operation.OPTIONS),
]

BODY_OPERATIONS = {Operation.CREATE, Operation.UPDATE, Operation.REPLACE}


def _reject_constant(token: str) -> Any:
    raise BadRequestError(f"Body contains non-standard JSON constant {token}.")


async def read_record_body(request: Request) -> dict[str, Any]:
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw, parse_constant=_reject_constant)
    except ValueError as exc:
        raise BadRequestError("Body is not valid JSON.") from exc
    if not isinstance(data, dict):
        raise BadRequestError("Body must be a JSON object.")
    return data


async def run_operation(
    controller: ResourceController,
    operation: Operation,
    request: Request,
    record_id: str | None = None,
) -> Response:
    context = ResponseContext()
    try:
        body = await read_record_body(request) if operation in BODY_OPERATIONS else None
        result = await controller.handle(
            operation,
            request,
            context,
            record_id=record_id,
            body=body,
        )
        # Rendering stays inside the try so its failures are logged per operation.
        if result.body is None:
            return empty_response(result.status, context)
        return json_response(result.status, result.body, context)
    except ResourceError as exc:
        return empty_response(exc.status)
    except Exception as exc:
        return internal_error_response(f"{controller.config.table}.{operation.value}", exc)


def _make_endpoint(controller: ResourceController, operation: Operation, kind: str):
    if kind == ITEM:

        async def item_endpoint(request: Request, record_id: str) -> Response:
            return await run_operation(controller, operation, request, record_id)

        return item_endpoint

    async def collection_endpoint(request: Request) -> Response:
        return await run_operation(controller, operation, request)

    return collection_endpoint


def build_router(controller: ResourceController, *, prefix: str = "", name: str | None = None) -> APIRouter:
    """
    Routes for `controller` mounted at `prefix` (e.g. "/tasks").
    """
    prefix = prefix.rstrip("/")
    name = name or controller.config.table
    router = APIRouter(prefix=prefix)
    paths = {
        COLLECTION: "" if prefix else "/",
        ITEM: "/{record_id}",
    }

    for method, kind, operation in ROUTES:
        router.add_api_route(
            paths[kind],
            _make_endpoint(controller, operation, kind),
            methods=[method],
            name=f"{name}.{operation.value}",
            include_in_schema=operation is not Operation.OPTIONS,
        )
    return router
