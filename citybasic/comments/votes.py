"""
Vote ledger writes.

apply_vote keeps comments.vote_count equal to SUM(comment_votes.value) for
the comment. Everything happens in one transaction that starts by locking the
comment row, so two votes on the same comment serialize instead of racing a
read-sum-then-write:

  1. SELECT comments.id ... FOR UPDATE
  2. INSERT comment_votes ... ON CONFLICT (user_id, comment_id) DO UPDATE
  3. UPDATE comments SET vote_count = (SELECT coalesce(sum(value), 0) ...)
     RETURNING vote_count
  4. COMMIT
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from citybasic.db.models import Comment, CommentVote

logger = logging.getLogger(__name__)


async def apply_vote(
    session: AsyncSession,
    user_id: str,
    comment_id: str,
    value: int,
) -> Optional[int]:
    """Record the user's vote and return the comment's new total, or None if the comment is gone."""
    locked = await session.execute(
        select(Comment.id).where(Comment.id == comment_id).with_for_update()
    )
    if locked.scalar() is None:
        await session.rollback()
        return None

    now = datetime.now(timezone.utc)
    upsert = (
        pg_insert(CommentVote)
        .values(
            id=str(uuid.uuid4()),
            user_id=user_id,
            comment_id=comment_id,
            value=value,
            created_at=now,
        )
        .on_conflict_do_update(
            constraint="uq_comment_votes_user_comment",
            set_={"value": value, "updated_at": now},
        )
    )
    await session.execute(upsert)

    total = (
        select(func.coalesce(func.sum(CommentVote.value), 0))
        .where(CommentVote.comment_id == comment_id)
        .scalar_subquery()
    )
    result = await session.execute(
        update(Comment)
        .where(Comment.id == comment_id)
        .values(vote_count=total)
        .returning(Comment.vote_count)
    )
    vote_count = result.scalar()
    await session.commit()

    logger.info("vote_applied comment=%s user=%s value=%s total=%s", comment_id, user_id, value, vote_count)
    return int(vote_count or 0)


async def user_votes_for(
    session: AsyncSession,
    user_id: str,
    comment_ids: list[str],
) -> dict[str, int]:
    """Map comment id -> the user's vote value for the given comments."""
    if not comment_ids:
        return {}
    result = await session.execute(
        select(CommentVote.comment_id, CommentVote.value).where(
            CommentVote.user_id == user_id,
            CommentVote.comment_id.in_(comment_ids),
        )
    )
    return {comment_id: value for comment_id, value in result.all()}
