"""Comment endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user
from core.exceptions import NotFoundError
from core.permissions import ensure_can_modify
from models.comment import Comment
from models.user import User
from schemas.comment import CommentCreate, CommentResponse, CommentUpdate
from schemas.envelope import Envelope
from services import comment_service

router = APIRouter(prefix="/comments", tags=["comments"])


async def _get_owned_comment(
    db: AsyncSession, comment_id: int, user: User, action: str,
) -> Comment:
    """Load a comment and check the user may `action` it."""
    comment = await comment_service.get_comment(db, comment_id)
    if comment is None:
        raise NotFoundError("Comment not found")
    ensure_can_modify(user, comment.author_id, action, "comment")
    return comment


@router.get("/post/{post_id}", response_model=Envelope[list[CommentResponse]])
async def list_comments(
    post_id: int,
    db: AsyncSession = Depends(get_async_session),
) -> Envelope[list[CommentResponse]]:
    """All comments on a post, oldest first."""
    comments = await comment_service.list_comments_for_post(db, post_id)
    return Envelope(data=[CommentResponse.model_validate(c) for c in comments])


@router.post("/", response_model=Envelope[CommentResponse], status_code=201)
async def create_comment(
    data: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> Envelope[CommentResponse]:
    """Comment on a post, or reply to a comment on the same post."""
    try:
        comment = await comment_service.create_comment(db, current_user, data)
    except comment_service.PostNotFoundError as e:
        raise NotFoundError("Post not found") from e
    except comment_service.ParentCommentNotFoundError as e:
        raise NotFoundError("Parent comment not found") from e
    return Envelope(message="Comment created", data=CommentResponse.model_validate(comment))


@router.put("/{comment_id}", response_model=Envelope[CommentResponse])
async def update_comment(
    comment_id: int,
    data: CommentUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> Envelope[CommentResponse]:
    """Edit a comment. Only its author or an admin may do so."""
    comment = await _get_owned_comment(db, comment_id, current_user, "update")
    comment = await comment_service.update_comment(db, comment, data.content)
    return Envelope(message="Comment updated", data=CommentResponse.model_validate(comment))


@router.delete("/{comment_id}", response_model=Envelope[None])
async def delete_comment(
    comment_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> Envelope[None]:
    """Delete a comment. Only its author or an admin may do so."""
    comment = await _get_owned_comment(db, comment_id, current_user, "delete")
    await comment_service.delete_comment(db, comment)
    return Envelope(message="Comment deleted")
