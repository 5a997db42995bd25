"""OAuth callback: code exchange, session cookies and safe redirects."""

import httpx
import pytest

from citybasic.auth.client import AuthExchangeError, AuthSession, AuthUser, SupabaseAuthClient
from citybasic.routers.auth import safe_next_path


def _session() -> AuthSession:
    return AuthSession(
        access_token="access-abc",
        refresh_token="refresh-xyz",
        expires_in=3600,
        user=AuthUser(id="user-001", email="traveler@example.com"),
    )


class TestCallback:
    async def test_missing_code_redirects_to_error_page(self, anon_client, mock_auth_client):
        response = await anon_client.get("/auth/callback")
        assert response.status_code == 303
        assert response.headers["location"] == "http://test/auth/auth-code-error"
        mock_auth_client.exchange_code_for_session.assert_not_awaited()

    async def test_successful_exchange_sets_cookies_and_redirects(self, anon_client, mock_auth_client):
        mock_auth_client.exchange_code_for_session.return_value = _session()

        response = await anon_client.get(
            "/auth/callback",
            params={"code": "oauth-code", "next": "/city/paris"},
            headers={"cookie": "sb-code-verifier=verifier-123"},
        )

        assert response.status_code == 303
        assert response.headers["location"] == "http://test/city/paris"
        mock_auth_client.exchange_code_for_session.assert_awaited_once_with("oauth-code", "verifier-123")
        cookies = response.headers.get_list("set-cookie")
        access = next(c for c in cookies if c.startswith("sb-access-token="))
        assert "HttpOnly" in access
        assert "Max-Age=3600" in access
        assert any(c.startswith("sb-refresh-token=refresh-xyz") for c in cookies)

    async def test_failed_exchange_redirects_to_error_page(self, anon_client, mock_auth_client):
        mock_auth_client.exchange_code_for_session.side_effect = AuthExchangeError("invalid grant")
        response = await anon_client.get("/auth/callback", params={"code": "stale"})
        assert response.status_code == 303
        assert response.headers["location"] == "http://test/auth/auth-code-error"
        assert "sb-access-token" not in response.headers.get("set-cookie", "")

    async def test_garbled_backend_reply_redirects_to_error_page(self, app, anon_client):
        http = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>oops</html>")))
        app.state.auth_client = SupabaseAuthClient("http://auth.test", "anon-key", http_client=http)

        response = await anon_client.get("/auth/callback", params={"code": "oauth-code"})

        assert response.status_code == 303
        assert response.headers["location"] == "http://test/auth/auth-code-error"
        await http.aclose()

    async def test_offsite_next_is_replaced(self, anon_client, mock_auth_client):
        mock_auth_client.exchange_code_for_session.return_value = _session()
        response = await anon_client.get("/auth/callback", params={"code": "c", "next": "//evil.example"})
        assert response.headers["location"] == "http://test/"


class TestSafeNextPath:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, "/"),
            ("", "/"),
            ("/", "/"),
            ("/fr/city/paris", "/fr/city/paris"),
            ("//evil.example", "/"),
            ("/\\evil.example", "/"),
            ("https://evil.example", "/"),
            ("city/paris", "/"),
        ],
    )
    def test_sanitizes(self, value, expected):
        assert safe_next_path(value) == expected
