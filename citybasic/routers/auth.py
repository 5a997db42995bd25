"""
OAuth callback.

GET /auth/callback?code=...&next=/path

The browser lands here after the provider redirect. The code is exchanged
with the auth backend (PKCE; the verifier was stored in a cookie when the
flow started), the session is written to httponly cookies and the user is
sent on to `next`. Any failure lands on /auth/auth-code-error.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import RedirectResponse

from citybasic.auth.client import AuthExchangeError
from citybasic.auth.deps import ACCESS_TOKEN_COOKIE, CODE_VERIFIER_COOKIE, REFRESH_TOKEN_COOKIE
from citybasic.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

ERROR_PATH = "/auth/auth-code-error"
REFRESH_TOKEN_MAX_AGE = 60 * 60 * 24 * 30


def safe_next_path(next_path: Optional[str]) -> str:
    """
    Keep `next` on this site.

    Only a path starting with a single "/" is accepted; "//evil.com",
    "/\\evil.com" and absolute URLs would let the callback act as an open
    redirect and are replaced by "/".
    """
    if not next_path or not next_path.startswith("/"):
        return "/"
    if next_path.startswith("//") or next_path.startswith("/\\"):
        return "/"
    if any(ch in next_path for ch in ("\r", "\n")):
        return "/"
    return next_path


def _origin(request: Request) -> str:
    return f"{request.url.scheme}://{request.url.netloc}"


@router.get("/callback")
async def oauth_callback(
    request: Request,
    code: Optional[str] = Query(default=None),
    next: Optional[str] = Query(default=None),
) -> RedirectResponse:
    origin = _origin(request)
    error_redirect = RedirectResponse(f"{origin}{ERROR_PATH}", status_code=303)
    if not code:
        return error_redirect

    auth_client = request.app.state.auth_client
    try:
        session = await auth_client.exchange_code_for_session(
            code, request.cookies.get(CODE_VERIFIER_COOKIE)
        )
    except AuthExchangeError as exc:
        logger.warning("oauth_exchange_failed error=%s", exc)
        return error_redirect

    response = RedirectResponse(f"{origin}{safe_next_path(next)}", status_code=303)
    cookie_opts = {"httponly": True, "samesite": "lax", "secure": settings.session_cookie_secure, "path": "/"}
    response.set_cookie(ACCESS_TOKEN_COOKIE, session.access_token, max_age=session.expires_in, **cookie_opts)
    if session.refresh_token:
        response.set_cookie(REFRESH_TOKEN_COOKIE, session.refresh_token, max_age=REFRESH_TOKEN_MAX_AGE, **cookie_opts)
    response.delete_cookie(CODE_VERIFIER_COOKIE, path="/")
    logger.info("oauth_session_started user=%s", session.user.id)
    return response
