"""Async client for the blog API, with a query cache and optimistic mutations."""
from blog_client.api import BlogClient
from blog_client.cache import CachedQuery, FetchStatus, QueryCache
from blog_client.comments import CommentThread
from blog_client.config import ClientConfig
from blog_client.exceptions import (
    ApiError,
    ConnectionFailedError,
    ForbiddenError,
    NotFoundError,
    RateLimitedError,
    ResponseParseError,
    ServerFaultError,
    UnauthorizedError,
    ValidationFailedError,
)
from blog_client.gate import can_modify, can_modify_resource
from blog_client.mutations import MutationState, MutationStateError, OptimisticMutation
from blog_client.notifications import Notification, Notifier
from blog_client.posts import PostViews
from blog_client.session import Session, SessionContext, SessionStore

__all__ = [
    "ApiError",
    "BlogClient",
    "CachedQuery",
    "ClientConfig",
    "CommentThread",
    "ConnectionFailedError",
    "FetchStatus",
    "ForbiddenError",
    "MutationState",
    "MutationStateError",
    "Notification",
    "Notifier",
    "NotFoundError",
    "OptimisticMutation",
    "PostViews",
    "QueryCache",
    "RateLimitedError",
    "ResponseParseError",
    "ServerFaultError",
    "Session",
    "SessionContext",
    "SessionStore",
    "UnauthorizedError",
    "ValidationFailedError",
    "can_modify",
    "can_modify_resource",
]
