"""Bearer token authentication dependencies."""
import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ForbiddenError, UnauthorizedError
from core.permissions import ADMIN_ROLE
from core.security import InvalidTokenError, decode_access_token
from db.session import get_async_session
from models.user import User

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_async_session),
) -> User:
    """
    Resolve the user from the `Authorization: Bearer <token>` header.

    Raises UnauthorizedError when the header is missing, the token is invalid or
    expired, or the user no longer exists. The authenticated user id is stored
    on request.state for logging.
    """
    if credentials is None:
        raise UnauthorizedError("No token, authorization denied")
    try:
        user_id = decode_access_token(credentials.credentials)
    except InvalidTokenError as e:
        logger.info("invalid_token", extra={"reason": str(e)})
        raise UnauthorizedError("Token is not valid") from e

    user = await db.get(User, user_id)
    if user is None:
        raise UnauthorizedError("Token is not valid")
    request.state.user_id = user.id
    return user


async def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    """Like get_current_user, but only admins pass."""
    if current_user.role != ADMIN_ROLE:
        raise ForbiddenError("Admin access required")
    return current_user
