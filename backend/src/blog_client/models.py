"""
Response models.

The server answers every call with one fixed envelope. Anything that does not
validate against these models is a ResponseParseError, never a tolerated
variant.
"""
from datetime import datetime
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

TEMP_ID_PREFIX = "temp-"


class ErrorItem(BaseModel):
    """One structured error from the envelope's `errors` list."""

    model_config = ConfigDict(extra="allow")

    msg: str
    field: str | None = None


class Pagination(BaseModel):
    """Page metadata returned by list endpoints."""

    current: int
    pages: int
    total: int
    limit: int


class Envelope(BaseModel):
    """`{success, message?, errors?, data?, pagination?}`."""

    model_config = ConfigDict(extra="ignore")

    success: bool
    message: str | None = None
    errors: list[ErrorItem] | None = None
    data: Any = None
    pagination: Pagination | None = None


class Author(BaseModel):
    """Public author fields. `id` is the only ownership field."""

    id: int
    name: str
    avatar: str = ""


class AuthorProfile(Author):
    bio: str = ""


class CategorySummary(BaseModel):
    id: int
    name: str
    slug: str


class Category(CategorySummary):
    description: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None


class Comment(BaseModel):
    """
    A comment as shown in a thread.

    Comments written locally and not yet confirmed carry a string id of the
    form `temp-<epoch ms>-<n>`; server comments always have an integer id.
    """

    id: int | str
    content: str
    author: Author
    post_id: int
    parent_comment_id: int | None = None
    replies: list[int] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime | None = None

    @property
    def is_temporary(self) -> bool:
        return isinstance(self.id, str) and self.id.startswith(TEMP_ID_PREFIX)


class Post(BaseModel):
    """A post. List endpoints omit `content` and `comments`."""

    id: int
    title: str
    slug: str
    content: str = ""
    excerpt: str = ""
    featured_image: str = ""
    tags: list[str] = Field(default_factory=list)
    status: Literal["draft", "published"]
    views: int = 0
    author: AuthorProfile
    category: CategorySummary
    comments: list[Comment] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class User(BaseModel):
    id: int
    name: str
    email: str
    role: Literal["user", "admin"]
    bio: str = ""
    avatar: str = ""
    created_at: datetime | None = None


class AuthResult(BaseModel):
    token: str
    user: User


class UploadedImage(BaseModel):
    url: str
    public_id: str


class Page(BaseModel, Generic[T]):
    """One page of a paginated list."""

    items: list[T]
    pagination: Pagination
