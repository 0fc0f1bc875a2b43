"""
HTTP base layer shared by every router.

- per-request `ResponseContext` (authorization context + extra headers)
- static and CORS response headers
- translation of errors into final responses
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import INTERNAL_ERROR_BODY, ResourceError

logger = logging.getLogger(__name__)

CORS_HEADERS = [
    ("Access-Control-Allow-Methods", "OPTIONS,GET,HEAD,POST,PUT,PATCH,DELETE"),
    ("Access-Control-Allow-Headers", "X-Requested-With,Content-Type"),
    ("Access-Control-Allow-Credentials", "true"),
    ("Access-Control-Max-Age", "86400"),
]


@dataclass
class ResponseContext:
    """
    Per-request state shared between a router, the controller and the
    session adapter. Discarded once the response is sent.
    """

    session: dict[str, Any] | None = None
    headers: dict[str, str] = field(default_factory=dict)


def empty_response(status_code: int, context: ResponseContext | None = None) -> Response:
    headers = dict(context.headers) if context is not None else None
    return Response(status_code=status_code, headers=headers)


def json_response(status_code: int, body: Any, context: ResponseContext | None = None) -> Response:
    headers = dict(context.headers) if context is not None else None
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def internal_error_response(source: str, exc: BaseException) -> Response:
    # Details go to the log only.
    logger.error("%s failed", source, exc_info=exc)
    return JSONResponse(status_code=500, content=INTERNAL_ERROR_BODY)


def cors_headers(mode: str, origin: str | None) -> list[tuple[str, str]]:
    if mode not in ("on", "dev"):
        return []
    headers = list(CORS_HEADERS)
    if mode == "dev":
        if origin:
            headers.append(("Access-Control-Allow-Origin", origin))
        headers.append(("Vary", "Origin"))
    else:
        headers.append(("Access-Control-Allow-Origin", "*"))
    return headers


def install_headers(app: FastAPI, *, cors_mode: str, static_headers: dict[str, str]) -> None:
    """
    Add CORS headers (per mode) and configured static headers to every response.
    """

    @app.middleware("http")
    async def set_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in cors_headers(cors_mode, request.headers.get("origin")):
            response.headers[name] = value
        for name, value in static_headers.items():
            response.headers[name] = value
        return response


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ResourceError)
    async def resource_error(_: Request, exc: ResourceError) -> Response:
        return empty_response(exc.status)

    @app.exception_handler(RequestValidationError)
    async def validation_error(_: Request, exc: RequestValidationError) -> Response:
        logger.debug("Rejected request body: %s", exc.errors())
        return empty_response(400)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(_: Request, exc: StarletteHTTPException) -> Response:
        # Unrouted paths and unsupported verbs both end as a bare 404.
        if exc.status_code in (404, 405):
            return empty_response(404)
        return empty_response(exc.status_code)

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> Response:
        return internal_error_response(f"{request.method} {request.url.path}", exc)
