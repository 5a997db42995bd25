"""Public profiles and self-service profile updates."""

import pytest

from citybasic.routers.profiles import ProfileUpdate
from citybasic.tests.conftest import make_profile


class TestGetProfile:
    async def test_missing_profile_returns_404(self, anon_client):
        response = await anon_client.get("/api/profiles/nobody")
        assert response.status_code == 404

    async def test_returns_public_fields_only(self, anon_client, mock_session):
        mock_session.returns_get(make_profile(id="u1", display_name="Ana", bio="Slow traveler"))
        response = await anon_client.get("/api/profiles/u1")
        profile = response.json()["profile"]
        assert profile["display_name"] == "Ana"
        assert profile["bio"] == "Slow traveler"
        assert set(profile) == {"id", "display_name", "bio", "country_code", "avatar_url", "created_at"}


class TestUpsertProfile:
    async def test_saves_profile(self, client, mock_session, user):
        mock_session.returns_one(make_profile(id=user.id, display_name="Ana", country_code="PT"))

        response = await client.put("/api/profile", json={"display_name": " Ana ", "country_code": "pt"})

        assert response.status_code == 200
        assert response.json()["profile"]["country_code"] == "PT"
        mock_session.mock.commit.assert_awaited_once()

    async def test_anonymous_returns_401(self, anon_client):
        response = await anon_client.put("/api/profile", json={"display_name": "Ana"})
        assert response.status_code == 401

    @pytest.mark.parametrize(
        "body",
        [
            {"display_name": ""},
            {"display_name": "x" * 51},
            {"display_name": "Ana", "country_code": "PRT"},
            {"display_name": "Ana", "avatar_url": "javascript:alert(1)"},
            {"display_name": "Ana", "bio": "x" * 301},
        ],
    )
    async def test_invalid_body_returns_400(self, client, body):
        response = await client.put("/api/profile", json=body)
        assert response.status_code == 400


class TestProfileUpdateModel:
    def test_normalizes_fields(self):
        update = ProfileUpdate.model_validate({"display_name": "  Ana ", "country_code": "pt", "bio": "  "})
        assert update.display_name == "Ana"
        assert update.country_code == "PT"
        assert update.bio is None
