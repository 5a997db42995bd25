"""Serialize comment rows for the frontend."""

from __future__ import annotations

from typing import Any, Optional

from citybasic.comments.tree import is_edited
from citybasic.db.models import Comment, Profile


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def profile_summary(user_id: str, profile: Optional[Profile]) -> dict[str, Any]:
    return {
        "id": user_id,
        "display_name": profile.display_name if profile is not None else None,
        "avatar_url": profile.avatar_url if profile is not None else None,
    }


def comment_to_dict(
    comment: Comment,
    profile: Optional[Profile] = None,
    *,
    user_vote: int = 0,
    reply_count: int = 0,
) -> dict[str, Any]:
    return {
        "id": comment.id,
        "content": comment.content,
        "city_slug": comment.city_slug,
        "place_slug": comment.place_slug,
        "parent_id": comment.parent_id,
        "user_id": comment.user_id,
        "created_at": _iso(comment.created_at),
        "updated_at": _iso(comment.updated_at),
        "is_edited": is_edited(comment.created_at, comment.updated_at),
        "profiles": profile_summary(comment.user_id, profile),
        "vote_count": comment.vote_count or 0,
        "user_vote": user_vote,
        "reply_count": reply_count,
    }
