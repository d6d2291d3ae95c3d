"""FastAPI dependencies for injection."""
from fastapi import Depends

from core.auth import get_current_admin, get_current_user
from core.config import Settings, get_settings
from core.exceptions import UploadQuotaExceededError
from core.redis import get_redis_client
from core.upload_quota import QuotaStatus, UploadQuota
from db.session import get_async_session
from models.user import User


async def enforce_upload_quota(
    current_user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
) -> QuotaStatus | None:
    """
    Count an upload attempt against the user's quota.

    Raises UploadQuotaExceededError (429 with Retry-After) once a window is
    used up. Returns None when no quota is enforced because Redis is down.
    """
    status = await UploadQuota.from_settings(settings).consume(
        current_user.id, get_redis_client(),
    )
    if status is not None and not status.allowed:
        raise UploadQuotaExceededError(status.headers)
    return status


__all__ = [
    "enforce_upload_quota",
    "get_async_session",
    "get_current_admin",
    "get_current_user",
    "get_settings",
]
