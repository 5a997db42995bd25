"""
Comment reports.

POST /api/reports  {commentId, reason}
  -> {success, message, data}

One report per (reporter, comment), enforced by a unique constraint; the
duplicate insert is surfaced as 409 rather than a server error. Reports are
created `pending` and reviewed out of band.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from citybasic.auth import AuthUser, require_user
from citybasic.comments.payloads import ReportRequest
from citybasic.db.models import Comment, CommentReport
from citybasic.db.session import get_db
from citybasic.errors import Conflict, DatabaseError, NotFound
from citybasic.ratelimit import RATE_LIMITS, enforce_rate_limit
from citybasic.routers._deps import parse_body

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.post("")
async def submit_report(
    request: Request,
    user: AuthUser = Depends(require_user),
    session: AsyncSession = Depends(get_db),
) -> dict:
    await enforce_rate_limit(
        session, user.id, CommentReport, RATE_LIMITS["REPORT"], user_column="reporter_id"
    )
    body = await parse_body(request, ReportRequest)

    exists = await session.execute(select(Comment.id).where(Comment.id == body.comment_id))
    if exists.scalar() is None:
        raise NotFound("Comment not found")

    report_id = str(uuid.uuid4())
    session.add(
        CommentReport(
            id=report_id,
            comment_id=body.comment_id,
            reporter_id=user.id,
            reason=body.reason,
            status="pending",
        )
    )
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise Conflict("You have already reported this comment")
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("report_insert_failed comment=%s user=%s error=%s", body.comment_id, user.id, exc)
        raise DatabaseError("Failed to submit report")

    logger.info("report_submitted id=%s comment=%s reporter=%s", report_id, body.comment_id, user.id)
    return {
        "success": True,
        "message": "Report submitted successfully",
        "data": {"id": report_id, "comment_id": body.comment_id, "status": "pending"},
    }
