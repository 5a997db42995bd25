"""Request bodies for the comment, vote, and report endpoints."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator

from citybasic.config import settings

# Comment ids are uuid4 strings; anything id-shaped is accepted so ids stay opaque
COMMENT_ID_PATTERN = r"^[A-Za-z0-9_-]{1,64}$"
SLUG_PATTERN = r"^[a-z0-9-]+$"


def _check_content(value: str) -> str:
    if not value:
        raise ValueError("content is required")
    if len(value) > settings.comment_max_length:
        raise ValueError(f"Comment must be {settings.comment_max_length} characters or less")
    return value


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class CommentCreate(_CamelModel):
    content: str
    city_slug: str = Field(alias="citySlug", min_length=1, pattern=SLUG_PATTERN)
    place_slug: Optional[str] = Field(default=None, alias="placeSlug", pattern=SLUG_PATTERN)
    parent_id: Optional[str] = Field(default=None, alias="parentId", pattern=COMMENT_ID_PATTERN)

    @field_validator("content")
    @classmethod
    def _content_bounds(cls, value: str) -> str:
        return _check_content(value)

    @field_validator("place_slug", "parent_id", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class CommentEdit(_CamelModel):
    content: str

    @field_validator("content")
    @classmethod
    def _content_bounds(cls, value: str) -> str:
        return _check_content(value)


class VoteRequest(_CamelModel):
    comment_id: str = Field(alias="commentId", pattern=COMMENT_ID_PATTERN)
    value: StrictInt

    @field_validator("value")
    @classmethod
    def _value_in_range(cls, value: int) -> int:
        if value not in (-1, 0, 1):
            raise ValueError("value must be -1, 0, or 1")
        return value


class ReportRequest(_CamelModel):
    comment_id: str = Field(alias="commentId", pattern=COMMENT_ID_PATTERN)
    reason: str = Field(min_length=1)

    @field_validator("reason")
    @classmethod
    def _reason_length(cls, value: str) -> str:
        if len(value) > settings.report_reason_max_length:
            raise ValueError(f"reason must be {settings.report_reason_max_length} characters or less")
        return value
