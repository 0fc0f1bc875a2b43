"""
Auth security helpers (bcrypt hashing, JWT encode/decode).
"""

from __future__ import annotations

import time
from typing import Any

import bcrypt
import jwt


class AuthSecurityError(RuntimeError):
    pass


def now_epoch_s() -> int:
    return int(time.time())


def hash_password(plain_password: str, *, rounds: int = 12) -> str:
    password = (plain_password or "").encode("utf-8")
    if not password:
        raise AuthSecurityError("Password is empty.")
    return bcrypt.hashpw(password, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    password = (plain_password or "").encode("utf-8")
    hashed = (password_hash or "").encode("utf-8")
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password, hashed)
    except ValueError:
        return False


def build_session_token(
    data: dict[str, Any],
    *,
    secret: str,
    algorithm: str = "HS256",
    expire_minutes: int = 60,
) -> str:
    issued_at = now_epoch_s()
    payload = {
        "data": data,
        "type": "session",
        "iat": issued_at,
        "exp": issued_at + (expire_minutes * 60),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_session_token(token: str, *, secret: str, algorithm: str = "HS256") -> dict[str, Any]:
    raw = (token or "").strip()
    if not raw:
        raise AuthSecurityError("Session token is empty.")

    try:
        payload = jwt.decode(raw, secret, algorithms=[algorithm])
    except jwt.InvalidTokenError as exc:
        raise AuthSecurityError("Invalid session token.") from exc

    token_type = str(payload.get("type") or "").strip().lower()
    if token_type != "session":
        raise AuthSecurityError("Token is not a session token.")

    data = payload.get("data")
    if not isinstance(data, dict):
        raise AuthSecurityError("Session token carries no data.")
    return data
