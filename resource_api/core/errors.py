"""
Resource error taxonomy.

Controller and auth code raise these; the HTTP layer (`core/http.py`) turns
them into empty responses carrying `status`. Anything else that escapes an
operation is treated as an internal error and never shown to the caller.
"""

from __future__ import annotations

INTERNAL_ERROR_BODY = {"code": "INTERNAL_ERROR"}


class ResourceError(Exception):
    status: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)


class BadRequestError(ResourceError):
    status = 400
    code = "BAD_REQUEST"


class UnauthorizedError(ResourceError):
    status = 401
    code = "UNAUTHORIZED"


class NotFoundError(ResourceError):
    status = 404
    code = "NOT_FOUND"


class ConflictError(ResourceError):
    status = 409
    code = "CONFLICT"
