"""
Authentication against the hosted auth backend.

Exports the HTTP client and the FastAPI dependencies routers use to
resolve (or require) the calling user.
"""

from citybasic.auth.client import AuthExchangeError, AuthSession, AuthUser, SupabaseAuthClient
from citybasic.auth.deps import get_current_user, require_user

__all__ = [
    "AuthExchangeError",
    "AuthSession",
    "AuthUser",
    "SupabaseAuthClient",
    "get_current_user",
    "require_user",
]
