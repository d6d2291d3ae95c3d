"""Comment model. Comments may reply to another comment on the same post."""
from typing import TYPE_CHECKING, Optional

from sqlalchemy import ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from models.post import Post
    from models.user import User


class Comment(Base, TimestampMixin):
    """
    A comment on a post.

    A post's comment list is `Post.comments`; a comment's reply list is
    `Comment.replies`. Both are derived from the foreign keys on this table.
    """

    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(primary_key=True)
    content: Mapped[str] = mapped_column(Text)
    author_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    post_id: Mapped[int] = mapped_column(
        ForeignKey("posts.id", ondelete="CASCADE"),
        index=True,
    )
    parent_comment_id: Mapped[int | None] = mapped_column(
        ForeignKey("comments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    author: Mapped["User"] = relationship(back_populates="comments")
    post: Mapped["Post"] = relationship(back_populates="comments")
    parent: Mapped[Optional["Comment"]] = relationship(
        back_populates="replies",
        remote_side=[id],
    )
    replies: Mapped[list["Comment"]] = relationship(
        back_populates="parent",
        passive_deletes=True,
        order_by="Comment.id",
    )
