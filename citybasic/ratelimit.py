"""
Per-action rate limiter backed by the rows the action itself writes.

No extra state: a user is limited when they own at least `max_requests`
rows in the target table created within the last `window_ms`. If the count
query fails the check passes (fail open) so a database hiccup never locks
legitimate users out of posting.

Presets:
  - COMMENT: 1 per 60s
  - VOTE:    10 per 5s
  - REPORT:  5 per 5min
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from citybasic.errors import RateLimited

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitConfig:
    window_ms: int
    max_requests: int


RATE_LIMITS = {
    "COMMENT": RateLimitConfig(window_ms=60_000, max_requests=1),
    "VOTE": RateLimitConfig(window_ms=5_000, max_requests=10),
    "REPORT": RateLimitConfig(window_ms=300_000, max_requests=5),
}

_DEFAULT_CONFIG = RateLimitConfig(window_ms=60_000, max_requests=1)


async def is_rate_limited(
    session: AsyncSession,
    user_id: str,
    table,
    config: RateLimitConfig = _DEFAULT_CONFIG,
    *,
    user_column: str = "user_id",
    now: datetime | None = None,
) -> bool:
    """Return True if `user_id` has hit `config.max_requests` rows in `table` inside the window.

    `table` is a mapped model class; it must expose `created_at` and `user_column`.
    """
    window_start = (now or datetime.now(timezone.utc)) - timedelta(milliseconds=config.window_ms)
    owner = getattr(table, user_column)

    stmt = (
        select(func.count())
        .select_from(table)
        .where(owner == user_id, table.created_at >= window_start)
    )
    try:
        result = await session.execute(stmt)
        count = result.scalar()
    except SQLAlchemyError as exc:
        logger.error("rate_limit_check_failed table=%s error=%s", table.__tablename__, exc)
        await session.rollback()
        return False

    return count is not None and count >= config.max_requests


async def enforce_rate_limit(
    session: AsyncSession,
    user_id: str,
    table,
    config: RateLimitConfig,
    *,
    user_column: str = "user_id",
) -> None:
    """Raise RateLimited when the user is over the limit for this action."""
    if await is_rate_limited(session, user_id, table, config, user_column=user_column):
        logger.info("rate_limited table=%s user=%s", table.__tablename__, user_id)
        raise RateLimited()
