"""Service layer for post operations."""
import logging
from typing import Literal

from sqlalchemy import Select, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models.category import Category
from models.comment import Comment
from models.post import Post
from models.user import User
from schemas.post import MAX_EXCERPT_LENGTH, PostCreate, PostUpdate
from services.utils import escape_ilike, unique_slug

logger = logging.getLogger(__name__)


class CategoryNotFoundError(Exception):
    """Raised when a post references a category that does not exist."""


def _post_query(with_comments: bool = False) -> Select[tuple[Post]]:
    """Select posts with author and category loaded (and comments when requested)."""
    query = select(Post).options(selectinload(Post.author), selectinload(Post.category))
    if with_comments:
        query = query.options(
            selectinload(Post.comments).selectinload(Comment.author),
            selectinload(Post.comments).selectinload(Comment.replies),
        )
    return query


def derive_excerpt(content: str) -> str:
    """First characters of the content, cut at a word boundary when truncated."""
    text = " ".join(content.split())
    if len(text) <= MAX_EXCERPT_LENGTH:
        return text
    cut = text[: MAX_EXCERPT_LENGTH - 3].rsplit(" ", 1)[0]
    return f"{cut}..."


async def _ensure_category(db: AsyncSession, category_id: int) -> None:
    if await db.get(Category, category_id) is None:
        raise CategoryNotFoundError(category_id)


async def search_posts(
    db: AsyncSession,
    status: Literal["draft", "published"] | None = None,
    category_id: int | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Post], int]:
    """
    List posts newest first with optional filters.

    Args:
        db: Database session.
        status: Only posts with this status.
        category_id: Only posts in this category.
        search: Case-insensitive substring match on title, excerpt and content.
        page: 1-based page number.
        limit: Page size.

    Returns:
        Tuple of (posts on the requested page, total matching posts).
    """
    filters = []
    if status is not None:
        filters.append(Post.status == status)
    if category_id is not None:
        filters.append(Post.category_id == category_id)
    if search:
        pattern = f"%{escape_ilike(search)}%"
        filters.append(
            or_(
                Post.title.ilike(pattern, escape="\\"),
                Post.excerpt.ilike(pattern, escape="\\"),
                Post.content.ilike(pattern, escape="\\"),
            ),
        )

    total = await db.scalar(select(func.count()).select_from(Post).where(*filters)) or 0

    result = await db.execute(
        _post_query()
        .where(*filters)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset((page - 1) * limit)
        .limit(limit),
    )
    return list(result.scalars().all()), total


async def get_post(
    db: AsyncSession,
    post_id: int,
    with_comments: bool = False,
) -> Post | None:
    """Get a post by id with author and category (and comments) loaded."""
    result = await db.execute(
        _post_query(with_comments)
        .where(Post.id == post_id)
        .execution_options(populate_existing=True),
    )
    return result.scalar_one_or_none()


async def view_post(db: AsyncSession, post_id: int) -> Post | None:
    """
    Get a post for display and count the view.

    The counter is bumped with a single UPDATE so concurrent readers don't lose
    increments; `updated_at` is left alone since the post itself didn't change.
    """
    await db.execute(
        update(Post)
        .where(Post.id == post_id)
        .values(views=Post.views + 1, updated_at=Post.updated_at)
        .execution_options(synchronize_session=False),
    )
    return await get_post(db, post_id, with_comments=True)


async def create_post(db: AsyncSession, author: User, data: PostCreate) -> Post:
    """
    Create a post owned by `author`.

    Raises:
        CategoryNotFoundError: If the category does not exist.
    """
    await _ensure_category(db, data.category_id)
    post = Post(
        title=data.title,
        slug=await unique_slug(db, data.title, Post.slug, 120),
        content=data.content,
        excerpt=data.excerpt or derive_excerpt(data.content),
        featured_image=data.featured_image,
        tags=data.tags,
        status=data.status,
        views=0,
        author_id=author.id,
        category_id=data.category_id,
    )
    db.add(post)
    await db.flush()
    logger.info("post_created", extra={"post_id": post.id, "user_id": author.id})
    return await get_post(db, post.id)


async def update_post(db: AsyncSession, post: Post, data: PostUpdate) -> Post:
    """
    Apply the provided fields to a post.

    Raises:
        CategoryNotFoundError: If a new category does not exist.
    """
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if "category_id" in changes:
        await _ensure_category(db, changes["category_id"])
    if "title" in changes and changes["title"] != post.title:
        post.slug = await unique_slug(db, changes["title"], Post.slug, 120)
    for field, value in changes.items():
        setattr(post, field, value)
    if "content" in changes and not post.excerpt:
        post.excerpt = derive_excerpt(post.content)
    await db.flush()
    return await get_post(db, post.id)


async def delete_post(db: AsyncSession, post: Post) -> None:
    """Delete a post together with all of its comments."""
    await db.execute(delete(Comment).where(Comment.post_id == post.id))
    await db.delete(post)
    await db.flush()
    logger.info("post_deleted", extra={"post_id": post.id})
