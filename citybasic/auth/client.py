"""
SupabaseAuthClient: thin httpx wrapper around the hosted GoTrue auth API.

Only two calls are needed server-side:
  GET  /auth/v1/user                      -- resolve an access token to a user
  POST /auth/v1/token?grant_type=pkce     -- exchange an OAuth code for a session

Token verification is delegated to the auth backend rather than decoding JWTs
locally, so revoked sessions are rejected immediately.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class AuthExchangeError(Exception):
    """Raised when an OAuth code cannot be exchanged for a session."""


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: str | None = None


@dataclass(frozen=True)
class AuthSession:
    access_token: str
    refresh_token: str
    expires_in: int
    user: AuthUser


def _user_from_payload(payload: dict[str, Any]) -> AuthUser | None:
    if not isinstance(payload, dict):
        return None
    user_id = payload.get("id")
    if not user_id:
        return None
    return AuthUser(id=str(user_id), email=payload.get("email"))


class SupabaseAuthClient:
    def __init__(
        self,
        base_url: str,
        anon_key: str,
        timeout_s: float = 5.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._anon_key = anon_key
        self._http = http_client or httpx.AsyncClient(timeout=timeout_s)

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        headers = {"apikey": self._anon_key}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    async def get_user(self, access_token: str) -> AuthUser | None:
        """Return the user behind `access_token`, or None if it is not valid."""
        if not access_token or not self._base_url:
            return None
        try:
            response = await self._http.get(
                f"{self._base_url}/auth/v1/user",
                headers=self._headers(access_token),
            )
        except httpx.HTTPError as exc:
            logger.warning("auth_user_lookup_failed error=%s", exc)
            return None
        if response.status_code != 200:
            return None
        try:
            payload = response.json()
        except ValueError:
            logger.warning("auth_user_lookup_bad_payload status=%s", response.status_code)
            return None
        return _user_from_payload(payload)

    async def exchange_code_for_session(self, code: str, code_verifier: str | None) -> AuthSession:
        if not self._base_url:
            raise AuthExchangeError("Auth backend not configured")
        try:
            response = await self._http.post(
                f"{self._base_url}/auth/v1/token",
                params={"grant_type": "pkce"},
                json={"auth_code": code, "code_verifier": code_verifier or ""},
                headers=self._headers(),
            )
        except httpx.HTTPError as exc:
            raise AuthExchangeError(str(exc)) from exc

        if response.status_code != 200:
            raise AuthExchangeError(f"token exchange returned {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise AuthExchangeError("token exchange returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise AuthExchangeError("token exchange returned no session")
        user = _user_from_payload(payload.get("user") or {})
        if user is None or not payload.get("access_token"):
            raise AuthExchangeError("token exchange returned no session")
        return AuthSession(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token", ""),
            expires_in=int(payload.get("expires_in") or 3600),
            user=user,
        )

    async def aclose(self) -> None:
        await self._http.aclose()
