"""Resource-level API: one group per server resource."""
from typing import Any, Literal

import httpx

from blog_client.config import ClientConfig
from blog_client.exceptions import ResponseParseError
from blog_client.http import ApiClient, parse_data
from blog_client.models import (
    AuthResult,
    Category,
    Comment,
    Page,
    Post,
    UploadedImage,
    User,
)
from blog_client.session import Session, SessionContext, SessionStore


def _payload(**fields: Any) -> dict[str, Any]:
    """Drop fields the caller did not provide."""
    return {k: v for k, v in fields.items() if v is not None}


class AuthApi:
    def __init__(self, http: ApiClient) -> None:
        self._http = http

    async def _start_session(self, path: str, body: dict[str, Any]) -> AuthResult:
        envelope = await self._http.request("POST", path, json=body)
        result: AuthResult = parse_data(envelope, AuthResult)
        self._http.session.start(Session.from_auth(result))
        return result

    async def register(self, name: str, email: str, password: str) -> AuthResult:
        """Create an account and start a session for it."""
        return await self._start_session(
            "/auth/register", {"name": name, "email": email, "password": password},
        )

    async def login(self, email: str, password: str) -> AuthResult:
        """Start a session. Bad credentials raise ValidationFailedError."""
        return await self._start_session("/auth/login", {"email": email, "password": password})

    def logout(self) -> None:
        self._http.session.clear()

    async def me(self) -> User:
        return parse_data(await self._http.request("GET", "/auth/me"), User)

    async def update_profile(
        self,
        name: str | None = None,
        bio: str | None = None,
        avatar: str | None = None,
    ) -> User:
        envelope = await self._http.request(
            "PUT", "/auth/profile", json=_payload(name=name, bio=bio, avatar=avatar),
        )
        return parse_data(envelope, User)


class PostsApi:
    def __init__(self, http: ApiClient) -> None:
        self._http = http

    async def search(
        self,
        status: Literal["draft", "published"] | None = None,
        category: int | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page[Post]:
        """One page of posts, newest first."""
        envelope = await self._http.request(
            "GET",
            "/posts/",
            params={
                "status": status,
                "category": category,
                "search": search,
                "page": page,
                "limit": limit,
            },
        )
        if envelope.pagination is None:
            raise ResponseParseError("Paginated response without pagination")
        return Page[Post](items=parse_data(envelope, list[Post]), pagination=envelope.pagination)

    async def get(self, post_id: int) -> Post:
        """A post with its comments. Counts as a view."""
        return parse_data(await self._http.request("GET", f"/posts/{post_id}"), Post)

    async def create(
        self,
        title: str,
        content: str,
        category_id: int,
        excerpt: str | None = None,
        featured_image: str | None = None,
        tags: list[str] | None = None,
        status: Literal["draft", "published"] = "draft",
    ) -> Post:
        body = _payload(
            title=title,
            content=content,
            category_id=category_id,
            excerpt=excerpt,
            featured_image=featured_image,
            tags=tags,
            status=status,
        )
        return parse_data(await self._http.request("POST", "/posts/", json=body), Post)

    async def update(self, post_id: int, **fields: Any) -> Post:
        """Update the given fields (title, content, category_id, excerpt, ...)."""
        envelope = await self._http.request("PUT", f"/posts/{post_id}", json=_payload(**fields))
        return parse_data(envelope, Post)

    async def delete(self, post_id: int) -> None:
        await self._http.request("DELETE", f"/posts/{post_id}")


class CategoriesApi:
    def __init__(self, http: ApiClient) -> None:
        self._http = http

    async def all(self) -> list[Category]:
        return parse_data(await self._http.request("GET", "/categories/"), list[Category])

    async def get(self, category_id: int) -> Category:
        return parse_data(await self._http.request("GET", f"/categories/{category_id}"), Category)

    async def create(self, name: str, description: str | None = None) -> Category:
        envelope = await self._http.request(
            "POST", "/categories/", json=_payload(name=name, description=description),
        )
        return parse_data(envelope, Category)

    async def update(
        self,
        category_id: int,
        name: str | None = None,
        description: str | None = None,
    ) -> Category:
        envelope = await self._http.request(
            "PUT",
            f"/categories/{category_id}",
            json=_payload(name=name, description=description),
        )
        return parse_data(envelope, Category)

    async def delete(self, category_id: int) -> None:
        await self._http.request("DELETE", f"/categories/{category_id}")


class CommentsApi:
    def __init__(self, http: ApiClient) -> None:
        self._http = http

    async def for_post(self, post_id: int) -> list[Comment]:
        """All comments on a post, oldest first."""
        envelope = await self._http.request("GET", f"/comments/post/{post_id}")
        return parse_data(envelope, list[Comment])

    async def create(
        self,
        post_id: int,
        content: str,
        parent_comment_id: int | None = None,
    ) -> Comment:
        body = _payload(post_id=post_id, content=content, parent_comment_id=parent_comment_id)
        return parse_data(await self._http.request("POST", "/comments/", json=body), Comment)

    async def update(self, comment_id: int, content: str) -> Comment:
        envelope = await self._http.request(
            "PUT", f"/comments/{comment_id}", json={"content": content},
        )
        return parse_data(envelope, Comment)

    async def delete(self, comment_id: int) -> None:
        await self._http.request("DELETE", f"/comments/{comment_id}")


class UploadsApi:
    def __init__(self, http: ApiClient) -> None:
        self._http = http

    async def upload(self, content: bytes, filename: str, content_type: str) -> UploadedImage:
        """Upload an image and return its public URL."""
        envelope = await self._http.request(
            "POST", "/uploads/", files={"file": (filename, content, content_type)},
        )
        return parse_data(envelope, UploadedImage)


class BlogClient:
    """
    Async client for the blog API.

    Example:
        async with BlogClient() as client:
            await client.auth.login("ada@example.com", "secret1")
            page = await client.posts.search(status="published")

    Args:
        config: Connection settings; read from `BLOG_*` env vars when omitted.
        session: Session context. Defaults to one persisted at
            `config.session_file`.
        transport: Optional httpx transport (tests use `httpx.ASGITransport`).
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        session: SessionContext | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or ClientConfig()
        self.session = session or SessionContext(SessionStore(self.config.session_file))
        self.http = ApiClient(self.config, self.session, transport=transport)
        self.auth = AuthApi(self.http)
        self.posts = PostsApi(self.http)
        self.categories = CategoriesApi(self.http)
        self.comments = CommentsApi(self.http)
        self.uploads = UploadsApi(self.http)

    async def close(self) -> None:
        await self.http.close()

    async def __aenter__(self) -> "BlogClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
