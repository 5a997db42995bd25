"""
Comment threads for city and place pages.

Endpoints:
  GET    /api/comments                   -- top-level comments for a city/place (paged, newest first)
  POST   /api/comments                   -- create a comment or reply (auth, 1 per minute)
  GET    /api/comments/{id}/replies      -- nested reply tree under a comment
  PATCH  /api/comments/{id}              -- owner edits content
  DELETE /api/comments/{id}              -- owner deletes (replies cascade)

No anonymous writes. Every write resolves the user first, then the rate
limiter, then validates the body.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from citybasic.auth import AuthUser, get_current_user, require_user
from citybasic.comments.payloads import CommentCreate, CommentEdit
from citybasic.comments.serialize import comment_to_dict
from citybasic.comments.tree import build_comment_tree
from citybasic.comments.votes import user_votes_for
from citybasic.db.models import Comment, Profile
from citybasic.db.session import get_db
from citybasic.errors import DatabaseError, NotFound, ValidationFailed
from citybasic.ratelimit import RATE_LIMITS, enforce_rate_limit
from citybasic.routers._deps import parse_body

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/comments", tags=["comments"])

MAX_PAGE_SIZE = 100


def _with_author():
    return select(Comment, Profile).outerjoin(Profile, Profile.id == Comment.user_id)


async def _reply_counts(session: AsyncSession, comment_ids: list[str]) -> dict[str, int]:
    if not comment_ids:
        return {}
    result = await session.execute(
        select(Comment.parent_id, func.count())
        .where(Comment.parent_id.in_(comment_ids))
        .group_by(Comment.parent_id)
    )
    return {parent_id: count for parent_id, count in result.all()}


async def _owned_comment(session: AsyncSession, comment_id: str, user_id: str) -> Comment:
    result = await session.execute(
        select(Comment).where(Comment.id == comment_id, Comment.user_id == user_id)
    )
    comment = result.scalars().first()
    if comment is None:
        raise NotFound("Comment not found")
    return comment


@router.get("")
async def list_comments(
    city_slug: Optional[str] = Query(default=None, alias="citySlug"),
    place_slug: Optional[str] = Query(default=None, alias="placeSlug"),
    limit: int = Query(default=20),
    offset: int = Query(default=0),
    user: Optional[AuthUser] = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> dict:
    if not city_slug:
        raise ValidationFailed("citySlug is required")
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    offset = max(0, offset)

    stmt = _with_author().where(Comment.city_slug == city_slug, Comment.parent_id.is_(None))
    if place_slug:
        stmt = stmt.where(Comment.place_slug == place_slug)
    else:
        stmt = stmt.where(Comment.place_slug.is_(None))
    stmt = stmt.order_by(Comment.created_at.desc()).offset(offset).limit(limit)

    try:
        rows = (await session.execute(stmt)).all()
        ids = [comment.id for comment, _ in rows]
        reply_counts = await _reply_counts(session, ids)
        user_votes = await user_votes_for(session, user.id, ids) if user else {}
    except SQLAlchemyError as exc:
        logger.error("comments_fetch_failed city=%s error=%s", city_slug, exc)
        raise DatabaseError("Failed to fetch comments")

    comments = [
        comment_to_dict(
            comment,
            profile,
            user_vote=user_votes.get(comment.id, 0),
            reply_count=reply_counts.get(comment.id, 0),
        )
        for comment, profile in rows
    ]
    return {"comments": comments, "hasMore": len(rows) == limit}


@router.post("", status_code=201)
async def create_comment(
    request: Request,
    user: AuthUser = Depends(require_user),
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    await enforce_rate_limit(session, user.id, Comment, RATE_LIMITS["COMMENT"])
    body = await parse_body(request, CommentCreate)

    if body.parent_id:
        parent = await session.get(Comment, body.parent_id)
        if (
            parent is None
            or parent.city_slug != body.city_slug
            or parent.place_slug != body.place_slug
        ):
            raise ValidationFailed("Invalid parent")

    comment_id = str(uuid.uuid4())
    session.add(
        Comment(
            id=comment_id,
            user_id=user.id,
            city_slug=body.city_slug,
            place_slug=body.place_slug,
            parent_id=body.parent_id,
            content=body.content,
            vote_count=0,
        )
    )
    try:
        await session.commit()
        row = (await session.execute(_with_author().where(Comment.id == comment_id))).first()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("comment_create_failed user=%s city=%s error=%s", user.id, body.city_slug, exc)
        raise DatabaseError("Failed to create comment")
    if row is None:
        raise DatabaseError("Failed to create comment")

    comment, profile = row
    logger.info("comment_created id=%s user=%s city=%s place=%s", comment_id, user.id, body.city_slug, body.place_slug)
    return JSONResponse(status_code=201, content={"comment": comment_to_dict(comment, profile)})


@router.get("/{comment_id}/replies")
async def list_replies(
    comment_id: str,
    user: Optional[AuthUser] = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> dict:
    root = await session.get(Comment, comment_id)
    if root is None:
        raise NotFound("Comment not found")

    descendants = (
        select(Comment.id).where(Comment.parent_id == comment_id).cte(name="descendants", recursive=True)
    )
    descendants = descendants.union_all(
        select(Comment.id).where(Comment.parent_id == descendants.c.id)
    )
    stmt = _with_author().where(Comment.id.in_(select(descendants.c.id))).order_by(Comment.created_at)

    try:
        rows = (await session.execute(stmt)).all()
        user_votes = await user_votes_for(session, user.id, [c.id for c, _ in rows]) if user else {}
    except SQLAlchemyError as exc:
        logger.error("replies_fetch_failed comment=%s error=%s", comment_id, exc)
        raise DatabaseError("Failed to fetch replies")

    flat = [comment_to_dict(c, p, user_vote=user_votes.get(c.id, 0)) for c, p in rows]
    return {"replies": build_comment_tree(flat, root_id=comment_id)}


@router.patch("/{comment_id}")
async def edit_comment(
    comment_id: str,
    request: Request,
    user: AuthUser = Depends(require_user),
    session: AsyncSession = Depends(get_db),
) -> dict:
    body = await parse_body(request, CommentEdit)
    comment = await _owned_comment(session, comment_id, user.id)

    comment.content = body.content
    comment.updated_at = datetime.now(timezone.utc)
    try:
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("comment_edit_failed id=%s error=%s", comment_id, exc)
        raise DatabaseError("Failed to update comment")

    logger.info("comment_edited id=%s user=%s", comment_id, user.id)
    return {"comment": comment_to_dict(comment)}


@router.delete("/{comment_id}")
async def delete_comment(
    comment_id: str,
    user: AuthUser = Depends(require_user),
    session: AsyncSession = Depends(get_db),
) -> dict:
    comment = await _owned_comment(session, comment_id, user.id)
    try:
        await session.delete(comment)
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("comment_delete_failed id=%s error=%s", comment_id, exc)
        raise DatabaseError("Failed to delete comment")

    logger.info("comment_deleted id=%s user=%s", comment_id, user.id)
    return {"success": True}
