"""
Votes API.

POST /api/votes  {commentId, value: -1 | 0 | 1}
  -> {success, vote_count, user_vote}

Order of checks: 401 unauthenticated, 429 rate limited (10 per 5s),
400 invalid payload, 404 unknown comment. value=0 clears the user's vote
but keeps the ledger row.
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from citybasic.auth import AuthUser, require_user
from citybasic.comments.payloads import VoteRequest
from citybasic.comments.votes import apply_vote
from citybasic.db.models import CommentVote
from citybasic.db.session import get_db
from citybasic.errors import DatabaseError, NotFound
from citybasic.ratelimit import RATE_LIMITS, enforce_rate_limit
from citybasic.routers._deps import parse_body

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/votes", tags=["votes"])


@router.post("")
async def cast_vote(
    request: Request,
    user: AuthUser = Depends(require_user),
    session: AsyncSession = Depends(get_db),
) -> dict:
    await enforce_rate_limit(session, user.id, CommentVote, RATE_LIMITS["VOTE"])
    body = await parse_body(request, VoteRequest)

    try:
        vote_count = await apply_vote(session, user.id, body.comment_id, body.value)
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("vote_failed comment=%s user=%s error=%s", body.comment_id, user.id, exc)
        raise DatabaseError("Failed to update vote")

    if vote_count is None:
        raise NotFound("Comment not found")

    return {"success": True, "vote_count": vote_count, "user_vote": body.value}
