"""
Per-action rate limiter.

Verifies:
- the (max+1)th action inside the window is limited, the max-th is not
- an empty window (nothing recent) is allowed again
- a failing count query fails open
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError

from citybasic.db.models import Comment, CommentReport, CommentVote
from citybasic.errors import RateLimited
from citybasic.ratelimit import RATE_LIMITS, RateLimitConfig, enforce_rate_limit, is_rate_limited


class TestIsRateLimited:
    async def test_limited_at_max(self, mock_session):
        mock_session.returns_scalar(1)
        assert await is_rate_limited(mock_session.mock, "u1", Comment, RATE_LIMITS["COMMENT"]) is True

    async def test_allowed_below_max(self, mock_session):
        mock_session.returns_scalar(9)
        assert await is_rate_limited(mock_session.mock, "u1", CommentVote, RATE_LIMITS["VOTE"]) is False

    async def test_allowed_once_window_is_empty(self, mock_session):
        mock_session.returns_scalar(0)
        assert await is_rate_limited(mock_session.mock, "u1", Comment, RATE_LIMITS["COMMENT"]) is False

    async def test_fails_open_on_database_error(self, mock_session):
        mock_session.raises(OperationalError("SELECT", {}, Exception("timeout")))
        assert await is_rate_limited(mock_session.mock, "u1", Comment, RATE_LIMITS["COMMENT"]) is False
        mock_session.mock.rollback.assert_awaited_once()

    async def test_window_start_is_bound_into_query(self, mock_session):
        now = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        mock_session.returns_scalar(0)
        await is_rate_limited(
            mock_session.mock, "u1", Comment, RateLimitConfig(window_ms=60_000, max_requests=1), now=now
        )
        stmt = mock_session.mock.execute.await_args.args[0]
        params = stmt.compile().params
        assert datetime(2026, 1, 1, 11, 59, 0, tzinfo=timezone.utc) in params.values()
        assert "u1" in params.values()


class TestEnforce:
    async def test_raises_when_limited(self, mock_session):
        mock_session.returns_scalar(5)
        with pytest.raises(RateLimited):
            await enforce_rate_limit(
                mock_session.mock, "u1", CommentReport, RATE_LIMITS["REPORT"], user_column="reporter_id"
            )

    async def test_passes_when_allowed(self, mock_session):
        mock_session.returns_scalar(4)
        await enforce_rate_limit(
            mock_session.mock, "u1", CommentReport, RATE_LIMITS["REPORT"], user_column="reporter_id"
        )


def test_presets():
    assert RATE_LIMITS["COMMENT"] == RateLimitConfig(60_000, 1)
    assert RATE_LIMITS["VOTE"] == RateLimitConfig(5_000, 10)
    assert RATE_LIMITS["REPORT"] == RateLimitConfig(300_000, 5)
