"""Pydantic schemas for post endpoints."""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

from schemas.category import CategorySummary
from schemas.comment import AuthorSummary, CommentResponse

PostStatusLiteral = Literal["draft", "published"]

MAX_TITLE_LENGTH = 100
MIN_CONTENT_LENGTH = 10
MAX_EXCERPT_LENGTH = 200


def _normalize_title(value: str) -> str:
    title = value.strip()
    if not 1 <= len(title) <= MAX_TITLE_LENGTH:
        raise ValueError(f"Title must be between 1 and {MAX_TITLE_LENGTH} characters")
    return title


def _normalize_content(value: str) -> str:
    content = value.strip()
    if len(content) < MIN_CONTENT_LENGTH:
        raise ValueError(f"Content must be at least {MIN_CONTENT_LENGTH} characters")
    return content


def _normalize_tags(tags: list[str]) -> list[str]:
    """Trim tags, drop empties and duplicates, keep first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags:
        cleaned = tag.strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


def _check_excerpt(value: str | None) -> str | None:
    if value is not None and len(value) > MAX_EXCERPT_LENGTH:
        raise ValueError(f"Excerpt cannot exceed {MAX_EXCERPT_LENGTH} characters")
    return value


class PostCreate(BaseModel):
    """Schema for creating a post."""

    title: str
    content: str
    category_id: int
    excerpt: str = ""
    featured_image: str = ""
    tags: list[str] = []
    status: PostStatusLiteral = "draft"

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        """Trim and bound the title."""
        return _normalize_title(v)

    @field_validator("content")
    @classmethod
    def check_content(cls, v: str) -> str:
        """Trim and require a minimum body length."""
        return _normalize_content(v)

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: list[str] | None) -> list[str]:
        """Normalize tags."""
        if v is None:
            return []
        if not isinstance(v, list):
            raise ValueError("Tags must be an array")
        return _normalize_tags(v)

    @field_validator("excerpt")
    @classmethod
    def check_excerpt(cls, v: str) -> str:
        """Bound the excerpt."""
        return _check_excerpt(v)


class PostUpdate(BaseModel):
    """Schema for updating a post. Omitted fields are unchanged."""

    title: str | None = None
    content: str | None = None
    category_id: int | None = None
    excerpt: str | None = None
    featured_image: str | None = None
    tags: list[str] | None = None
    status: PostStatusLiteral | None = None

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str | None) -> str | None:
        """Trim and bound the title if provided."""
        return None if v is None else _normalize_title(v)

    @field_validator("content")
    @classmethod
    def check_content(cls, v: str | None) -> str | None:
        """Trim and require a minimum body length if provided."""
        return None if v is None else _normalize_content(v)

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, v: list[str] | None) -> list[str] | None:
        """Normalize tags if provided."""
        if v is None:
            return None
        if not isinstance(v, list):
            raise ValueError("Tags must be an array")
        return _normalize_tags(v)

    @field_validator("excerpt")
    @classmethod
    def check_excerpt(cls, v: str | None) -> str | None:
        """Bound the excerpt if provided."""
        return _check_excerpt(v)


class AuthorProfile(AuthorSummary):
    """Author fields shown on a single post page."""

    bio: str


class PostListItem(BaseModel):
    """
    Schema for post list items (excludes content).

    Use GET /posts/{id} to fetch the full post with its comments.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    slug: str
    excerpt: str
    featured_image: str
    tags: list[str]
    status: str
    views: int
    author: AuthorSummary
    category: CategorySummary
    created_at: datetime
    updated_at: datetime


class PostResponse(PostListItem):
    """Full post payload returned by mutation endpoints."""

    content: str


class PostDetailResponse(PostResponse):
    """Single post page: full post, author profile and comments (oldest first)."""

    author: AuthorProfile
    comments: list[CommentResponse]
