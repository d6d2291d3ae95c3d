"""Pydantic schemas for comment endpoints."""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

MAX_COMMENT_LENGTH = 500


def _normalize_content(value: str) -> str:
    content = value.strip()
    if not 1 <= len(content) <= MAX_COMMENT_LENGTH:
        raise ValueError(f"Comment must be between 1 and {MAX_COMMENT_LENGTH} characters")
    return content


class CommentCreate(BaseModel):
    """Schema for posting a comment, optionally as a reply."""

    content: str
    post_id: int
    parent_comment_id: int | None = None

    @field_validator("content")
    @classmethod
    def check_content(cls, v: str) -> str:
        """Trim and bound the comment text."""
        return _normalize_content(v)


class CommentUpdate(BaseModel):
    """Schema for editing a comment's text."""

    content: str

    @field_validator("content")
    @classmethod
    def check_content(cls, v: str) -> str:
        """Trim and bound the comment text."""
        return _normalize_content(v)


class AuthorSummary(BaseModel):
    """Public author fields embedded in posts and comments."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    avatar: str


class CommentResponse(BaseModel):
    """
    Comment payload.

    `replies` lists the ids of direct replies, in creation order.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    content: str
    author: AuthorSummary
    post_id: int
    parent_comment_id: int | None
    replies: list[int]
    created_at: datetime
    updated_at: datetime

    @field_validator("replies", mode="before")
    @classmethod
    def reply_ids(cls, v: list[Any]) -> list[int]:
        """Accept ORM reply objects and keep only their ids."""
        return [r if isinstance(r, int) else r.id for r in v]
