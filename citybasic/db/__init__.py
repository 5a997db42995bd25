"""
SQLAlchemy async database module.

Re-exports engine, session, and model utilities for the FastAPI service.
"""

from citybasic.db.engine import create_engine, create_schema, standalone_session
from citybasic.db.session import get_db
from citybasic.db.models import (
    Base,
    Profile,
    Comment,
    CommentVote,
    CommentReport,
    SavedPlace,
)

__all__ = [
    "create_engine",
    "create_schema",
    "standalone_session",
    "get_db",
    "Base",
    "Profile",
    "Comment",
    "CommentVote",
    "CommentReport",
    "SavedPlace",
]
