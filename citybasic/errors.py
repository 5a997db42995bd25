"""
API error taxonomy.

Route handlers raise these; the handler registered in main renders them
into the standard envelope:

    {"success": false, "error": {"code": ..., "message": ...}, "requestId": ...}
"""

from __future__ import annotations


class ApiError(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None, *, code: str | None = None, status_code: int | None = None):
        self.message = message or self.message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class Unauthorized(ApiError):
    status_code = 401
    code = "UNAUTHORIZED"
    message = "Unauthorized"


class ValidationFailed(ApiError):
    status_code = 400
    code = "VALIDATION_ERROR"
    message = "Invalid payload"


class NotFound(ApiError):
    status_code = 404
    code = "NOT_FOUND"
    message = "Resource not found."


class Conflict(ApiError):
    status_code = 409
    code = "CONFLICT"
    message = "Conflict"


class RateLimited(ApiError):
    status_code = 429
    code = "RATE_LIMITED"
    message = "Too many requests. Please slow down."


class DatabaseError(ApiError):
    status_code = 500
    code = "DATABASE_ERROR"
    message = "A database error occurred."


def error_body(code: str, message: str, request_id: str) -> dict:
    return {
        "success": False,
        "error": {"code": code, "message": message},
        "requestId": request_id,
    }
