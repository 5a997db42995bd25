"""
Traveler profiles.

GET /api/profiles/{user_id}  -- public profile (no email or auth data)
PUT /api/profile             -- upsert the caller's own profile; created on first save
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from citybasic.auth import AuthUser, require_user
from citybasic.db.models import Profile
from citybasic.db.session import get_db
from citybasic.errors import DatabaseError, NotFound
from citybasic.routers._deps import parse_body

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["profiles"])


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    display_name: str = Field(min_length=1, max_length=50)
    bio: Optional[str] = Field(default=None, max_length=300)
    country_code: Optional[str] = Field(default=None, pattern=r"^[A-Za-z]{2}$")
    avatar_url: Optional[str] = Field(default=None, pattern=r"^https?://\S+$")

    @field_validator("country_code")
    @classmethod
    def _upper(cls, value: Optional[str]) -> Optional[str]:
        return value.upper() if value else value

    @field_validator("bio", "country_code", "avatar_url", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


def profile_to_dict(profile: Profile) -> dict:
    return {
        "id": profile.id,
        "display_name": profile.display_name,
        "bio": profile.bio,
        "country_code": profile.country_code,
        "avatar_url": profile.avatar_url,
        "created_at": profile.created_at.isoformat() if profile.created_at else None,
    }


@router.get("/profiles/{user_id}")
async def get_profile(user_id: str, session: AsyncSession = Depends(get_db)) -> dict:
    profile = await session.get(Profile, user_id)
    if profile is None:
        raise NotFound("User not found")
    return {"profile": profile_to_dict(profile)}


@router.put("/profile")
async def upsert_profile(
    request: Request,
    user: AuthUser = Depends(require_user),
    session: AsyncSession = Depends(get_db),
) -> dict:
    body = await parse_body(request, ProfileUpdate)
    values = body.model_dump()
    now = datetime.now(timezone.utc)

    stmt = (
        pg_insert(Profile)
        .values(id=user.id, updated_at=now, **values)
        .on_conflict_do_update(index_elements=[Profile.id], set_={**values, "updated_at": now})
        .returning(Profile)
    )
    try:
        result = await session.execute(stmt)
        profile = result.scalars().first()
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("profile_upsert_failed user=%s error=%s", user.id, exc)
        raise DatabaseError("Failed to update profile")

    logger.info("profile_saved user=%s", user.id)
    return {"success": True, "profile": profile_to_dict(profile)}
