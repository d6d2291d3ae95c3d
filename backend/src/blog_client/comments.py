"""Comment thread for one post: cached list, optimistic add and delete."""
import itertools
import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime

from blog_client.api import BlogClient
from blog_client.cache import QueryCache, QueryKey
from blog_client.exceptions import UnauthorizedError, ValidationFailedError
from blog_client.gate import can_modify_resource
from blog_client.models import TEMP_ID_PREFIX, Author, Comment
from blog_client.mutations import OptimisticMutation
from blog_client.notifications import Notifier

logger = logging.getLogger(__name__)

_sequence = itertools.count(1)


def temporary_id() -> str:
    """
    Placeholder id for a comment the server has not confirmed yet.

    `temp-<epoch ms>-<n>`; the counter keeps ids distinct within one millisecond.
    """
    return f"{TEMP_ID_PREFIX}{int(time.time() * 1000)}-{next(_sequence)}"


class CommentThread:
    """
    The comments of one post, kept in a shared QueryCache under
    `("comments", post_id)`.

    Several threads (or other views) for the same post share one cache entry.
    """

    def __init__(
        self,
        client: BlogClient,
        cache: QueryCache,
        post_id: int,
        notifier: Notifier | None = None,
    ) -> None:
        self.client = client
        self.cache = cache
        self.post_id = post_id
        self.notifier = notifier or Notifier()

    @property
    def key(self) -> QueryKey:
        return ("comments", self.post_id)

    @property
    def comments(self) -> list[Comment] | None:
        """Cached comments, or None if they were never loaded."""
        return self.cache.get(self.key)

    async def _fetch(self) -> list[Comment]:
        return await self.client.comments.for_post(self.post_id)

    async def load(self) -> list[Comment]:
        """Fetch the comments (sharing any fetch already in flight)."""
        return await self.cache.fetch(self.key, self._fetch)

    def subscribe(self, listener: Callable[[list[Comment] | None], None]) -> Callable[[], None]:
        """Watch the thread. Loads it if nothing is cached yet."""
        return self.cache.subscribe(self.key, listener, fetcher=self._fetch)

    async def add(self, content: str, parent_comment_id: int | None = None) -> Comment:
        """
        Post a comment, showing it immediately with a temporary id.

        Raises:
            UnauthorizedError: Without a session; nothing is sent.
            ValidationFailedError: Blank content; nothing is sent.
            ApiError: The server rejected the comment; the thread is rolled back.
        """
        session = self.client.session.session
        if session is None:
            self.notifier.error("You must be logged in to comment")
            raise UnauthorizedError("You must be logged in to comment")
        text = content.strip()
        if not text:
            raise ValidationFailedError(
                "Comment cannot be empty",
                errors=[{"msg": "Comment cannot be empty", "field": "content"}],
            )

        placeholder = Comment(
            id=temporary_id(),
            content=text,
            author=Author(id=session.user_id, name=session.name, avatar=session.avatar),
            post_id=self.post_id,
            parent_comment_id=parent_comment_id,
            created_at=datetime.now(UTC),
        )
        mutation: OptimisticMutation[Comment] = OptimisticMutation(
            self.cache,
            self.key,
            apply=lambda current: [*(current or []), placeholder],
            request=lambda: self.client.comments.create(self.post_id, text, parent_comment_id),
            notifier=self.notifier,
            success_message="Comment posted",
            error_message="Failed to post comment",
        )
        return await mutation.run()

    async def delete(self, comment_id: int) -> None:
        """Delete a comment, hiding it immediately."""

        def without_comment(current: list[Comment] | None) -> list[Comment] | None:
            if current is None:
                return None
            return [c for c in current if c.id != comment_id]

        mutation: OptimisticMutation[None] = OptimisticMutation(
            self.cache,
            self.key,
            apply=without_comment,
            request=lambda: self.client.comments.delete(comment_id),
            notifier=self.notifier,
            success_message="Comment deleted",
            error_message="Failed to delete comment",
        )
        await mutation.run()

    def can_delete(self, comment: Comment) -> bool:
        """Whether to offer delete: the author or an admin, and only for confirmed comments."""
        session = self.client.session.session
        return not comment.is_temporary and can_modify_resource(session, comment)
