"""
Process settings read from environment variables.

Every value has a development default so the API starts with no environment
at all (in-memory storage, CORS off, one protected `tasks` resource).
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any

CORS_MODES = ("off", "on", "dev")

DEFAULT_RESOURCES: list[dict[str, Any]] = [
    {
        "name": "tasks",
        "table": "Tasks",
        "timestamps": {"created": "createdAt", "updated": "updatedAt"},
        "unique": [],
        "update_on_conflict": False,
        "protected": True,
        "hidden": [],
    }
]


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, "").strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


def _env_json(name: str, default: Any) -> Any:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} is not valid JSON.") from exc


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    database_url: str = ""
    cors_mode: str = "off"
    response_headers: dict[str, str] = field(default_factory=dict)
    jwt_secret: str = "dev-change-this-secret"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    bcrypt_rounds: int = 12
    session_expose: tuple[str, ...] = ("id", "username")
    resources: list[dict[str, Any]] = field(default_factory=lambda: list(DEFAULT_RESOURCES))
    log_level: str = "INFO"
    log_json: bool = False


def load_settings() -> Settings:
    cors_mode = _env_str("CORS_MODE", "off").lower()
    if cors_mode not in CORS_MODES:
        raise RuntimeError(f"CORS_MODE must be one of {', '.join(CORS_MODES)}.")

    headers = _env_json("RESPONSE_HEADERS", {})
    if not isinstance(headers, dict):
        raise RuntimeError("RESPONSE_HEADERS must be a JSON object.")

    resources = _env_json("RESOURCES", DEFAULT_RESOURCES)
    if not isinstance(resources, list):
        raise RuntimeError("RESOURCES must be a JSON list.")

    return Settings(
        # Empty selects in-memory storage.
        database_url=os.environ.get("DATABASE_URL", "").strip(),
        cors_mode=cors_mode,
        response_headers={str(k): str(v) for k, v in headers.items()},
        jwt_secret=_env_str("JWT_SECRET", "dev-change-this-secret"),
        jwt_algorithm=_env_str("JWT_ALG", "HS256"),
        access_token_expire_minutes=_env_int("ACCESS_TOKEN_EXPIRE_MIN", 60),
        bcrypt_rounds=_env_int("BCRYPT_ROUNDS", 12),
        session_expose=_env_list("SESSION_EXPOSE", ("id", "username")),
        resources=resources,
        log_level=_env_str("LOG_LEVEL", "INFO").upper(),
        log_json=_env_bool("LOG_JSON", False),
    )
