"""SupabaseAuthClient against a stubbed auth backend (httpx.MockTransport)."""

import httpx
import pytest

from citybasic.auth.client import AuthExchangeError, SupabaseAuthClient

pytestmark = pytest.mark.asyncio

BASE = "http://auth.test"


def _client(handler) -> SupabaseAuthClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SupabaseAuthClient(BASE, "anon-key", http_client=http)


class TestGetUser:
    async def test_valid_token_returns_user(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["authorization"]
            seen["apikey"] = request.headers["apikey"]
            return httpx.Response(200, json={"id": "user-001", "email": "a@example.com"})

        user = await _client(handler).get_user("tok")

        assert user.id == "user-001"
        assert user.email == "a@example.com"
        assert seen == {"auth": "Bearer tok", "apikey": "anon-key"}

    async def test_rejected_token_returns_none(self):
        client = _client(lambda request: httpx.Response(401, json={"msg": "invalid JWT"}))
        assert await client.get_user("expired") is None

    async def test_transport_error_returns_none(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        assert await _client(handler).get_user("tok") is None

    async def test_non_json_reply_returns_none(self):
        client = _client(lambda request: httpx.Response(200, text="<html>gateway</html>"))
        assert await client.get_user("tok") is None

    async def test_non_object_reply_returns_none(self):
        client = _client(lambda request: httpx.Response(200, json=["user-001"]))
        assert await client.get_user("tok") is None


class TestExchange:
    async def test_exchange_returns_session(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/auth/v1/token"
            assert request.url.params["grant_type"] == "pkce"
            return httpx.Response(
                200,
                json={
                    "access_token": "acc",
                    "refresh_token": "ref",
                    "expires_in": 1800,
                    "user": {"id": "user-001", "email": "a@example.com"},
                },
            )

        session = await _client(handler).exchange_code_for_session("code", "verifier")

        assert session.access_token == "acc"
        assert session.expires_in == 1800
        assert session.user.id == "user-001"

    async def test_error_status_raises(self):
        client = _client(lambda request: httpx.Response(400, json={"error": "invalid_grant"}))
        with pytest.raises(AuthExchangeError):
            await client.exchange_code_for_session("bad", None)

    async def test_missing_session_raises(self):
        client = _client(lambda request: httpx.Response(200, json={"user": None}))
        with pytest.raises(AuthExchangeError):
            await client.exchange_code_for_session("code", "v")

    async def test_non_json_reply_raises(self):
        client = _client(lambda request: httpx.Response(200, text="<html>gateway</html>"))
        with pytest.raises(AuthExchangeError):
            await client.exchange_code_for_session("code", "v")

    async def test_unconfigured_backend_raises(self):
        client = SupabaseAuthClient("", "anon-key")
        with pytest.raises(AuthExchangeError):
            await client.exchange_code_for_session("code", "v")
        await client.aclose()
