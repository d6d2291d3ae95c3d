"""Cached post lists and post details, refreshed after every post write."""
import logging
from collections.abc import Callable
from typing import Any, Literal

from blog_client.api import BlogClient
from blog_client.cache import Fetcher, QueryCache, QueryKey
from blog_client.models import Page, Post
from blog_client.mutations import OptimisticMutation
from blog_client.notifications import Notifier, describe_error

logger = logging.getLogger(__name__)

POSTS: QueryKey = ("posts",)
POST_LISTS: QueryKey = ("posts", "list")

PostStatus = Literal["draft", "published"]


class PostViews:
    """
    Post queries kept in a shared QueryCache.

    Pages live under `("posts", "list", status, category, search, page, limit)`
    and single posts under `("posts", "detail", post_id)`. A created, edited or
    deleted post can move between pages, categories and search results, so
    each write invalidates every list rather than guessing which ones changed.
    """

    def __init__(
        self,
        client: BlogClient,
        cache: QueryCache,
        notifier: Notifier | None = None,
    ) -> None:
        self.client = client
        self.cache = cache
        self.notifier = notifier or Notifier()

    @staticmethod
    def list_key(
        status: PostStatus | None = None,
        category: int | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> QueryKey:
        return (*POST_LISTS, status, category, search, page, limit)

    @staticmethod
    def detail_key(post_id: int) -> QueryKey:
        return ("posts", "detail", post_id)

    def _page_fetcher(
        self,
        status: PostStatus | None,
        category: int | None,
        search: str | None,
        page: int,
        limit: int,
    ) -> Fetcher:
        async def fetch() -> Page[Post]:
            return await self.client.posts.search(
                status=status, category=category, search=search, page=page, limit=limit,
            )

        return fetch

    def _post_fetcher(self, post_id: int) -> Fetcher:
        async def fetch() -> Post:
            return await self.client.posts.get(post_id)

        return fetch

    async def page(
        self,
        status: PostStatus | None = None,
        category: int | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[Post]:
        """One page of posts, sharing any fetch of the same page already in flight."""
        return await self.cache.fetch(
            self.list_key(status, category, search, page, limit),
            self._page_fetcher(status, category, search, page, limit),
        )

    def subscribe_page(
        self,
        listener: Callable[[Page[Post] | None], None],
        status: PostStatus | None = None,
        category: int | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> Callable[[], None]:
        return self.cache.subscribe(
            self.list_key(status, category, search, page, limit),
            listener,
            fetcher=self._page_fetcher(status, category, search, page, limit),
        )

    async def post(self, post_id: int) -> Post:
        """A single post. Every fetch counts as a view on the server."""
        return await self.cache.fetch(self.detail_key(post_id), self._post_fetcher(post_id))

    def subscribe_post(
        self, post_id: int, listener: Callable[[Post | None], None],
    ) -> Callable[[], None]:
        return self.cache.subscribe(
            self.detail_key(post_id), listener, fetcher=self._post_fetcher(post_id),
        )

    async def create(
        self,
        title: str,
        content: str,
        category_id: int,
        **fields: Any,
    ) -> Post:
        """
        Create a post, then refresh every cached post list.

        Raises:
            ApiError: The server rejected the post; an error notification is shown.
        """
        try:
            created = await self.client.posts.create(title, content, category_id, **fields)
        except Exception as e:
            self.notifier.error(describe_error(e, "Failed to create post"))
            raise
        self.cache.invalidate_prefix(POSTS)
        self.notifier.success("Post created successfully!")
        return created

    async def update(self, post_id: int, **fields: Any) -> Post:
        """
        Edit a post, showing the new values in its cached detail immediately.

        Fields the cached Post does not carry (such as `category_id`) are only
        visible once the refetch lands. A rejected edit restores the detail.
        """
        shown = {name: value for name, value in fields.items() if name in Post.model_fields}

        def edited(current: Post | None) -> Post | None:
            return None if current is None else current.model_copy(update=shown)

        mutation: OptimisticMutation[Post] = OptimisticMutation(
            self.cache,
            self.detail_key(post_id),
            apply=edited,
            request=lambda: self.client.posts.update(post_id, **fields),
            notifier=self.notifier,
            success_message="Post updated successfully!",
            error_message="Failed to update post",
        )
        updated = await mutation.run()
        # The mutation already refetches the detail
        self.cache.invalidate_prefix(POST_LISTS)
        return updated

    async def delete(self, post_id: int) -> None:
        """Delete a post, drop its cached detail and refresh every list."""
        try:
            await self.client.posts.delete(post_id)
        except Exception as e:
            self.notifier.error(describe_error(e, "Failed to delete post"))
            raise
        self.cache.remove(self.detail_key(post_id))
        self.cache.invalidate_prefix(POSTS)
        logger.debug("post_deleted", extra={"post_id": post_id})
        self.notifier.success("Post deleted successfully")
