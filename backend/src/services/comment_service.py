"""Service layer for comments."""
import logging

from sqlalchemy import Select, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models.comment import Comment
from models.post import Post
from models.user import User
from schemas.comment import CommentCreate

logger = logging.getLogger(__name__)


class PostNotFoundError(Exception):
    """Raised when commenting on a post that does not exist."""


class ParentCommentNotFoundError(Exception):
    """Raised when replying to a comment that is missing or on another post."""


def _comment_query() -> Select[tuple[Comment]]:
    return select(Comment).options(
        selectinload(Comment.author),
        selectinload(Comment.replies),
    )


async def list_comments_for_post(db: AsyncSession, post_id: int) -> list[Comment]:
    """All comments on a post, oldest first."""
    result = await db.execute(
        _comment_query()
        .where(Comment.post_id == post_id)
        .order_by(Comment.created_at.asc(), Comment.id.asc()),
    )
    return list(result.scalars().all())


async def get_comment(db: AsyncSession, comment_id: int) -> Comment | None:
    """Get a comment with its author and reply list loaded."""
    result = await db.execute(
        _comment_query()
        .where(Comment.id == comment_id)
        .execution_options(populate_existing=True),
    )
    return result.scalar_one_or_none()


async def create_comment(db: AsyncSession, author: User, data: CommentCreate) -> Comment:
    """
    Create a comment, appending it to the parent's replies when it is a reply.

    Raises:
        PostNotFoundError: If the post does not exist.
        ParentCommentNotFoundError: If the parent is missing or belongs to another post.
    """
    if await db.get(Post, data.post_id) is None:
        raise PostNotFoundError(data.post_id)

    parent: Comment | None = None
    if data.parent_comment_id is not None:
        parent = await get_comment(db, data.parent_comment_id)
        if parent is None or parent.post_id != data.post_id:
            raise ParentCommentNotFoundError(data.parent_comment_id)

    comment = Comment(
        content=data.content,
        author_id=author.id,
        post_id=data.post_id,
        replies=[],
    )
    db.add(comment)
    if parent is not None:
        parent.replies.append(comment)
    await db.flush()
    logger.info(
        "comment_created",
        extra={"comment_id": comment.id, "post_id": data.post_id, "user_id": author.id},
    )
    return await get_comment(db, comment.id)


async def update_comment(db: AsyncSession, comment: Comment, content: str) -> Comment:
    """Replace a comment's text."""
    comment.content = content
    await db.flush()
    return await get_comment(db, comment.id)


async def delete_comment(db: AsyncSession, comment: Comment) -> None:
    """
    Delete a comment after dereferencing it.

    Its own replies are detached first and become top-level comments on the
    post. Deleting the row then drops it from its parent's reply list and from
    the post's comment list, all inside the caller's transaction.
    """
    await db.execute(
        update(Comment)
        .where(Comment.parent_comment_id == comment.id)
        .values(parent_comment_id=None, updated_at=Comment.updated_at),
    )
    await db.delete(comment)
    await db.flush()
    logger.info("comment_deleted", extra={"comment_id": comment.id, "post_id": comment.post_id})
