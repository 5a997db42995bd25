"""
Saved places.

Endpoints:
  GET  /api/favorites?placeSlug&citySlug  -- {isSaved}; anonymous callers get false
  POST /api/favorites                     -- toggle: delete if saved, insert if not
  GET  /api/favorites/mine                -- the caller's saved places, newest first
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from citybasic.auth import AuthUser, get_current_user, require_user
from citybasic.comments.payloads import SLUG_PATTERN
from citybasic.db.models import SavedPlace
from citybasic.db.session import get_db
from citybasic.errors import DatabaseError, ValidationFailed
from citybasic.routers._deps import parse_body

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/favorites", tags=["favorites"])


class FavoriteToggle(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    place_slug: str = Field(alias="placeSlug", min_length=1, pattern=SLUG_PATTERN)
    city_slug: str = Field(alias="citySlug", min_length=1, pattern=SLUG_PATTERN)


def _saved_to_dict(saved: SavedPlace) -> dict:
    return {
        "id": saved.id,
        "place_slug": saved.place_slug,
        "city_slug": saved.city_slug,
        "created_at": saved.created_at.isoformat() if saved.created_at else None,
    }


async def _find_saved(session: AsyncSession, user_id: str, place_slug: str, city_slug: str) -> Optional[SavedPlace]:
    result = await session.execute(
        select(SavedPlace).where(
            SavedPlace.user_id == user_id,
            SavedPlace.place_slug == place_slug,
            SavedPlace.city_slug == city_slug,
        )
    )
    return result.scalars().first()


@router.get("")
async def is_saved(
    place_slug: Optional[str] = Query(default=None, alias="placeSlug"),
    city_slug: Optional[str] = Query(default=None, alias="citySlug"),
    user: Optional[AuthUser] = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> dict:
    if not place_slug or not city_slug:
        raise ValidationFailed("placeSlug and citySlug are required")
    if user is None:
        return {"isSaved": False}
    try:
        saved = await _find_saved(session, user.id, place_slug, city_slug)
    except SQLAlchemyError as exc:
        logger.error("favorite_lookup_failed user=%s error=%s", user.id, exc)
        raise DatabaseError("Failed to check saved state")
    return {"isSaved": saved is not None}


@router.post("")
async def toggle_saved(
    request: Request,
    user: AuthUser = Depends(require_user),
    session: AsyncSession = Depends(get_db),
) -> dict:
    body = await parse_body(request, FavoriteToggle)
    try:
        existing = await _find_saved(session, user.id, body.place_slug, body.city_slug)
        if existing is not None:
            await session.delete(existing)
            await session.commit()
            logger.info("place_unsaved user=%s city=%s place=%s", user.id, body.city_slug, body.place_slug)
            return {"success": True, "isSaved": False, "message": "Place removed from saved"}

        saved = SavedPlace(
            id=str(uuid.uuid4()),
            user_id=user.id,
            place_slug=body.place_slug,
            city_slug=body.city_slug,
        )
        session.add(saved)
        await session.commit()
    except IntegrityError:
        # A concurrent save won the unique (user, city, place) insert
        await session.rollback()
        logger.info("place_already_saved user=%s city=%s place=%s", user.id, body.city_slug, body.place_slug)
        return {"success": True, "isSaved": True, "message": "Place saved"}
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("favorite_toggle_failed user=%s error=%s", user.id, exc)
        raise DatabaseError("Failed to update saved places")

    logger.info("place_saved user=%s city=%s place=%s", user.id, body.city_slug, body.place_slug)
    return {"success": True, "isSaved": True, "message": "Place saved", "data": _saved_to_dict(saved)}


@router.get("/mine")
async def list_saved(
    user: AuthUser = Depends(require_user),
    session: AsyncSession = Depends(get_db),
) -> dict:
    result = await session.execute(
        select(SavedPlace)
        .where(SavedPlace.user_id == user.id)
        .order_by(SavedPlace.created_at.desc())
    )
    return {"favorites": [_saved_to_dict(s) for s in result.scalars().all()]}
