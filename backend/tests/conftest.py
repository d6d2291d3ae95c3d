"""
Shared fixtures.

The app runs against a throwaway SQLite database (aiosqlite) in a temp
directory; every test gets a fresh schema. Redis is not connected, so upload
quotas are not enforced unless a test installs a client.
"""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["REDIS_ENABLED"] = "false"

from collections.abc import AsyncIterator, Awaitable, Callable, Iterator  # noqa: E402
from pathlib import Path  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from redis.asyncio import Redis  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool  # noqa: E402

from api.main import app  # noqa: E402
from blog_client import BlogClient, ClientConfig, SessionContext, SessionStore  # noqa: E402
from core.redis import connect_redis, get_redis_client, set_redis_client  # noqa: E402
from core.security import create_access_token  # noqa: E402
from db.session import enable_sqlite_foreign_keys, get_async_session  # noqa: E402
from models import Base, Category, Post, User, UserRole  # noqa: E402
from schemas.auth import RegisterRequest  # noqa: E402
from schemas.category import CategoryCreate  # noqa: E402
from schemas.post import PostCreate  # noqa: E402
from services import category_service, post_service, user_service  # noqa: E402

TEST_PASSWORD = "secret1"


@pytest.fixture
async def db_engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    """File-backed SQLite so concurrent sessions each get their own connection."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """A session for calling services directly."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def app_with_db(session_factory: async_sessionmaker[AsyncSession]) -> Iterator[None]:
    """Point the app's session dependency at the test database."""

    async def override_get_async_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_async_session] = override_get_async_session
    original_redis = get_redis_client()
    set_redis_client(None)
    yield
    set_redis_client(original_redis)
    app.dependency_overrides.clear()


@pytest.fixture
async def client(app_with_db: None) -> AsyncIterator[AsyncClient]:  # noqa: ARG001
    """HTTP client talking to the app in-process."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def make_user(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[User]]:
    """Factory creating a committed user."""

    async def _make_user(
        name: str = "Ada Lovelace",
        email: str = "ada@example.com",
        role: str = UserRole.USER,
    ) -> User:
        async with session_factory() as db:
            user = await user_service.create_user(
                db,
                RegisterRequest(name=name, email=email, password=TEST_PASSWORD),
                role=role,
            )
            await db.commit()
            return user

    return _make_user


@pytest.fixture
async def author(make_user: Callable[..., Awaitable[User]]) -> User:
    return await make_user("Ada Lovelace", "ada@example.com")


@pytest.fixture
async def other_user(make_user: Callable[..., Awaitable[User]]) -> User:
    return await make_user("Grace Hopper", "grace@example.com")


@pytest.fixture
async def admin(make_user: Callable[..., Awaitable[User]]) -> User:
    return await make_user("Root Admin", "admin@example.com", role=UserRole.ADMIN)


def bearer(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


@pytest.fixture
def author_headers(author: User) -> dict[str, str]:
    return bearer(author)


@pytest.fixture
def other_headers(other_user: User) -> dict[str, str]:
    return bearer(other_user)


@pytest.fixture
def admin_headers(admin: User) -> dict[str, str]:
    return bearer(admin)


@pytest.fixture
async def category(session_factory: async_sessionmaker[AsyncSession]) -> Category:
    async with session_factory() as db:
        created = await category_service.create_category(
            db, CategoryCreate(name="Technology", description="Tech posts"),
        )
        await db.commit()
        return created


@pytest.fixture
def make_post(
    session_factory: async_sessionmaker[AsyncSession],
    category: Category,
) -> Callable[..., Awaitable[Post]]:
    """Factory creating a committed post in the `category` fixture."""

    async def _make_post(
        owner: User,
        title: str = "Hello World",
        content: str = "This is the body of the post.",
        status: str = "published",
    ) -> Post:
        async with session_factory() as db:
            post = await post_service.create_post(
                db,
                owner,
                PostCreate(title=title, content=content, category_id=category.id, status=status),
            )
            await db.commit()
            return post

    return _make_post


@pytest.fixture
async def post(make_post: Callable[..., Awaitable[Post]], author: User) -> Post:
    return await make_post(author)


@pytest.fixture
async def make_blog_client(
    app_with_db: None,  # noqa: ARG001
    tmp_path: Path,
) -> AsyncIterator[Callable[[str], BlogClient]]:
    """Factory for BlogClient instances wired to the in-process app, one session file each."""
    clients: list[BlogClient] = []

    def _make(name: str = "default") -> BlogClient:
        config = ClientConfig(base_url="http://test", session_file=tmp_path / f"{name}.json")
        new_client = BlogClient(
            config=config,
            session=SessionContext(SessionStore(config.session_file)),
            transport=ASGITransport(app=app),
        )
        clients.append(new_client)
        return new_client

    yield _make
    for c in clients:
        await c.close()


@pytest.fixture
async def blog(
    make_blog_client: Callable[[str], BlogClient],
) -> AsyncIterator[BlogClient]:
    async with make_blog_client("default") as c:
        yield c


@pytest.fixture
async def redis_client(app_with_db: None) -> AsyncIterator[Redis]:  # noqa: ARG001
    """
    A real Redis connection on a scratch database, installed as the global client.

    Skips the test when no Redis server is reachable at REDIS_TEST_URL.
    """
    url = os.environ.get("REDIS_TEST_URL", "redis://localhost:6379/15")
    client = await connect_redis(url)
    if client is None:
        pytest.skip(f"Redis not available at {url}")
    await client.flushdb()
    original = get_redis_client()
    set_redis_client(client)
    yield client
    set_redis_client(original)
    await client.aclose()
