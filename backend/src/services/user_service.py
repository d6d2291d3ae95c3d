"""Service layer for accounts and authentication."""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.security import hash_password, verify_password
from models.user import User, UserRole
from schemas.auth import ProfileUpdate, RegisterRequest

logger = logging.getLogger(__name__)


class DuplicateEmailError(Exception):
    """Raised when registering an email that already has an account."""


async def get_user(db: AsyncSession, user_id: int) -> User | None:
    """Get a user by id."""
    return await db.get(User, user_id)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Get a user by (lowercased) email."""
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    data: RegisterRequest,
    role: str = UserRole.USER,
) -> User:
    """
    Create an account with a hashed password.

    Raises:
        DuplicateEmailError: If the email is already registered.
    """
    if await get_user_by_email(db, data.email) is not None:
        raise DuplicateEmailError(data.email)
    user = User(
        name=data.name,
        email=data.email,
        password_hash=hash_password(data.password),
        role=role,
        bio="",
        avatar="",
    )
    db.add(user)
    await db.flush()
    logger.info("user_registered", extra={"user_id": user.id})
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User | None:
    """Return the user if the credentials match, else None."""
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


async def update_profile(db: AsyncSession, user: User, data: ProfileUpdate) -> User:
    """Apply the provided profile fields."""
    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(user, field, value)
    await db.flush()
    return user
