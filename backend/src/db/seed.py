"""
Seed the database with demo categories, users and posts.

Usage (from backend/src, after `alembic upgrade head`):

    python -m db.seed

Existing posts, comments, categories and users are deleted first. Every
seeded account uses the password `password123`; john@example.com is an admin.
"""
import asyncio
import logging

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from core.logging_config import configure_logging
from core.security import hash_password
from db.session import async_session_factory
from models import Category, Comment, Post, User, UserRole
from schemas.category import CategoryCreate
from schemas.post import PostCreate
from services import category_service, post_service

logger = logging.getLogger(__name__)

SEED_PASSWORD = "password123"  # noqa: S105

CATEGORIES = [
    ("Technology", "Posts about technology, programming, and software development"),
    ("Web Development", "Articles about web development, frameworks, and best practices"),
    ("Python", "Python tutorials, tips, and tricks"),
    ("Databases", "Database design and SQL best practices"),
    ("Tutorials", "Step-by-step guides and tutorials"),
    ("Tips & Tricks", "Useful tips and tricks for developers"),
]

USERS = [
    ("John Doe", "john@example.com", UserRole.ADMIN, "Full-stack developer and site admin."),
    ("Jane Smith", "jane@example.com", UserRole.USER, "Frontend developer who loves clean UIs."),
    ("Mike Johnson", "mike@example.com", UserRole.USER, "Backend developer focused on databases."),
]

# (title, author index, category name, tags, status, content)
POSTS = [
    (
        "Getting Started with Async Python",
        0,
        "Python",
        ["python", "asyncio"],
        "published",
        "Async Python lets one thread juggle thousands of network calls. This post walks "
        "through coroutines, tasks and the event loop with small runnable examples.",
    ),
    (
        "Designing a REST API Envelope",
        1,
        "Web Development",
        ["api", "rest"],
        "published",
        "A fixed response envelope makes clients simpler: one success flag, one message, "
        "one list of structured errors and one data field.",
    ),
    (
        "Indexes You Actually Need",
        2,
        "Databases",
        ["sql", "performance"],
        "published",
        "Before adding an index, look at the queries you run. Foreign keys and the columns "
        "you sort by are the usual suspects.",
    ),
    (
        "Draft: Optimistic UI Updates",
        1,
        "Tips & Tricks",
        ["ui"],
        "draft",
        "Showing a change before the server confirms it feels fast, as long as you can roll "
        "it back cleanly when the request fails.",
    ),
]


async def clear(db: AsyncSession) -> None:
    for model in (Comment, Post, Category, User):
        await db.execute(delete(model))


async def seed(db: AsyncSession) -> None:
    """Replace all data with the demo set."""
    await clear(db)

    categories: dict[str, Category] = {}
    for name, description in CATEGORIES:
        categories[name] = await category_service.create_category(
            db, CategoryCreate(name=name, description=description),
        )

    password_hash = hash_password(SEED_PASSWORD)
    users = [
        User(name=name, email=email, password_hash=password_hash, role=role, bio=bio, avatar="")
        for name, email, role, bio in USERS
    ]
    db.add_all(users)
    await db.flush()

    for title, author_index, category_name, tags, status, content in POSTS:
        await post_service.create_post(
            db,
            users[author_index],
            PostCreate(
                title=title,
                content=content,
                category_id=categories[category_name].id,
                tags=tags,
                status=status,
            ),
        )

    logger.info(
        "database_seeded",
        extra={"categories": len(categories), "users": len(users), "posts": len(POSTS)},
    )


async def main() -> None:
    configure_logging(get_settings().log_level)
    async with async_session_factory() as db:
        await seed(db)
        await db.commit()


if __name__ == "__main__":
    asyncio.run(main())
