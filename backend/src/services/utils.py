"""Shared helpers for service-layer queries."""
import re
import secrets

from sqlalchemy import ColumnElement, exists, select
from sqlalchemy.ext.asyncio import AsyncSession


def escape_ilike(value: str) -> str:
    """Escape LIKE/ILIKE wildcards so user input matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def slugify(text: str) -> str:
    """
    Lowercase, hyphen-separated slug (e.g. 'Tips & Tricks' -> 'tips-tricks').

    Falls back to 'item' when nothing alphanumeric remains.
    """
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "item"


async def unique_slug(
    db: AsyncSession,
    text: str,
    slug_column: ColumnElement,
    max_length: int,
) -> str:
    """
    Slug for `text` that is not yet used in `slug_column`.

    A random suffix is appended on collision.
    """
    base = slugify(text)[: max_length - 7]
    candidate = base
    while await db.scalar(select(exists().where(slug_column == candidate))):
        candidate = f"{base}-{secrets.token_hex(3)}"
    return candidate
