"""Auth dependencies shared by the community routers."""

from fastapi import Depends, Request

from citybasic.auth.client import AuthUser
from citybasic.errors import Unauthorized

ACCESS_TOKEN_COOKIE = "sb-access-token"
REFRESH_TOKEN_COOKIE = "sb-refresh-token"
CODE_VERIFIER_COOKIE = "sb-code-verifier"


def _extract_access_token(request: Request) -> str | None:
    header = request.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        token = header[7:].strip()
        if token:
            return token
    return request.cookies.get(ACCESS_TOKEN_COOKIE) or None


async def get_current_user(request: Request) -> AuthUser | None:
    """
    Resolve the signed-in user from the bearer header or session cookie.

    Returns None for anonymous callers; routes that need a user depend on
    require_user instead.
    """
    token = _extract_access_token(request)
    if token is None:
        return None
    auth_client = getattr(request.app.state, "auth_client", None)
    if auth_client is None:
        return None
    return await auth_client.get_user(token)


async def require_user(user: AuthUser | None = Depends(get_current_user)) -> AuthUser:
    if user is None:
        raise Unauthorized()
    return user
