"""SQLAlchemy models."""
from models.base import Base, TimestampMixin
from models.category import Category
from models.comment import Comment
from models.post import Post, PostStatus
from models.user import User, UserRole

__all__ = [
    "Base",
    "Category",
    "Comment",
    "Post",
    "PostStatus",
    "TimestampMixin",
    "User",
    "UserRole",
]
