"""
Account API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import Response

from resource_api.core.http import ResponseContext, empty_response, json_response

from . import schemas
from .service import AccountService


def build_router(service: AccountService, *, prefix: str = "/auth") -> APIRouter:
    router = APIRouter(prefix=prefix)

    @router.post("/register", status_code=201)
    async def register(payload: schemas.RegisterRequest, request: Request) -> Response:
        context = ResponseContext()
        user = await service.register(payload, request=request, context=context)
        return json_response(201, user, context)

    @router.post("/login")
    async def login(payload: schemas.LoginRequest, request: Request) -> Response:
        context = ResponseContext()
        user = await service.login(payload, request=request, context=context)
        return json_response(200, user, context)

    @router.post("/logout", status_code=204)
    async def logout(request: Request) -> Response:
        context = ResponseContext()
        await service.logout(request=request, context=context)
        return empty_response(204, context)

    @router.get("/me")
    async def me(request: Request) -> Response:
        context = ResponseContext()
        user = await service.me(request=request, context=context)
        return json_response(200, user, context)

    return router
