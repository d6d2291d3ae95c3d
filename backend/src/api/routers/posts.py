"""Post CRUD endpoints."""
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from core.exceptions import NotFoundError, ValidationFailedError
from core.permissions import ensure_can_modify
from models.post import Post
from models.user import User
from schemas.envelope import Envelope, Pagination
from schemas.post import PostCreate, PostDetailResponse, PostListItem, PostResponse, PostUpdate
from services import post_service

router = APIRouter(prefix="/posts", tags=["posts"])


def _category_not_found() -> ValidationFailedError:
    return ValidationFailedError(
        [{"msg": "Category not found", "field": "category_id"}],
        message="Category not found",
    )


async def _get_owned_post(db: AsyncSession, post_id: int, user: User, action: str) -> Post:
    """Load a post and check the user may `action` it."""
    post = await post_service.get_post(db, post_id)
    if post is None:
        raise NotFoundError("Post not found")
    ensure_can_modify(user, post.author_id, action, "post")
    return post


@router.get("/", response_model=Envelope[list[PostListItem]])
async def list_posts(
    status: Literal["draft", "published"] | None = Query(default=None),
    category: int | None = Query(default=None, description="Category id"),
    search: str | None = Query(default=None, description="Search title, excerpt and content"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_async_session),
) -> Envelope[list[PostListItem]]:
    """List posts newest first, paginated."""
    posts, total = await post_service.search_posts(
        db,
        status=status,
        category_id=category,
        search=search,
        page=page,
        limit=limit,
    )
    return Envelope(
        data=[PostListItem.model_validate(p) for p in posts],
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )


@router.get("/{post_id}", response_model=Envelope[PostDetailResponse])
async def get_post(
    post_id: int,
    db: AsyncSession = Depends(get_async_session),
) -> Envelope[PostDetailResponse]:
    """Get a single post with its comments. Each read counts as a view."""
    post = await post_service.view_post(db, post_id)
    if post is None:
        raise NotFoundError("Post not found")
    return Envelope(data=PostDetailResponse.model_validate(post))


@router.post("/", response_model=Envelope[PostResponse], status_code=201)
async def create_post(
    data: PostCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> Envelope[PostResponse]:
    """Create a post authored by the current user."""
    try:
        post = await post_service.create_post(db, current_user, data)
    except post_service.CategoryNotFoundError as e:
        raise _category_not_found() from e
    return Envelope(message="Post created successfully", data=PostResponse.model_validate(post))


@router.put("/{post_id}", response_model=Envelope[PostResponse])
async def update_post(
    post_id: int,
    data: PostUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> Envelope[PostResponse]:
    """Update a post. Only its author or an admin may do so."""
    post = await _get_owned_post(db, post_id, current_user, "update")
    try:
        post = await post_service.update_post(db, post, data)
    except post_service.CategoryNotFoundError as e:
        raise _category_not_found() from e
    return Envelope(message="Post updated successfully", data=PostResponse.model_validate(post))


@router.delete("/{post_id}", response_model=Envelope[None])
async def delete_post(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> Envelope[None]:
    """Delete a post and its comments. Only its author or an admin may do so."""
    post = await _get_owned_post(db, post_id, current_user, "delete")
    await post_service.delete_post(db, post)
    return Envelope(message="Post deleted successfully")
