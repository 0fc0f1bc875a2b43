from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from resource_api.auth import router as auth_router
from resource_api.auth.passwords import BcryptPasswordAdapter
from resource_api.auth.service import AccountService
from resource_api.auth.sessions import JwtSessionAdapter
from resource_api.core.http import install_error_handlers, install_headers
from resource_api.core.logging import configure_logging
from resource_api.core.settings import Settings, load_settings
from resource_api.resources import (
    Capabilities,
    FieldFilter,
    ResourceConfig,
    ResourceController,
    build_router,
)
from resource_api.storage import DatabaseAdapter, MemoryDatabaseAdapter, PostgresDatabaseAdapter

logger = logging.getLogger(__name__)


def build_capabilities(settings: Settings, *, database: DatabaseAdapter | None = None) -> Capabilities:
    if database is None:
        if settings.database_url:
            database = PostgresDatabaseAdapter(url=settings.database_url)
        else:
            database = MemoryDatabaseAdapter()
    return Capabilities(
        database=database,
        session=JwtSessionAdapter(
            settings.jwt_secret,
            expose=settings.session_expose,
            algorithm=settings.jwt_algorithm,
            expire_minutes=settings.access_token_expire_minutes,
        ),
        password=BcryptPasswordAdapter(rounds=settings.bcrypt_rounds),
    )


def build_controller(definition: dict[str, Any], capabilities: Capabilities) -> ResourceController:
    if not definition.get("protected", True):
        capabilities = capabilities.without_session()
    hidden = definition.get("hidden") or ()
    return ResourceController(
        ResourceConfig.from_dict(definition),
        capabilities,
        shaper=FieldFilter(drop_outbound=hidden),
    )


def create_app(settings: Settings | None = None, *, database: DatabaseAdapter | None = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    capabilities = build_capabilities(settings, database=database)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        # Open the storage backend once per process.
        await capabilities.database.open()
        try:
            yield
        finally:
            await capabilities.database.close()

    app = FastAPI(lifespan=lifespan)
    app.state.capabilities = capabilities
    app.state.controllers = {}

    install_headers(app, cors_mode=settings.cors_mode, static_headers=settings.response_headers)
    install_error_handlers(app)

    app.include_router(auth_router.build_router(AccountService(capabilities)), tags=["auth"])

    for definition in settings.resources:
        name = str(definition.get("name") or definition.get("table") or "").strip("/")
        controller = build_controller(definition, capabilities)
        app.state.controllers[name] = controller
        app.include_router(build_router(controller, prefix=f"/{name}", name=name), tags=[name])
        logger.info("Mounted resource %s on /%s", controller.config.table, name)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
