"""
Per-user image upload quota.

Uploads are forwarded to the image host, which bills per stored image, so each
user gets a fixed number of upload attempts per clock hour and per UTC day.
Counters live in Redis under `upload_quota:<user id>:<window>:<bucket>` and
expire with their window. Without Redis the quota is not enforced.
"""
import logging
import time
from dataclasses import dataclass

from redis.asyncio import Redis
from redis.exceptions import RedisError

from core.config import Settings

logger = logging.getLogger(__name__)

HOUR = 60 * 60
DAY = 24 * HOUR


@dataclass(frozen=True)
class QuotaWindow:
    """A fixed window aligned to the epoch, e.g. each clock hour."""

    name: str
    seconds: int
    limit: int

    def bucket(self, now: int) -> int:
        return now // self.seconds

    def resets_at(self, now: int) -> int:
        return (self.bucket(now) + 1) * self.seconds


@dataclass(frozen=True)
class QuotaStatus:
    """Outcome of one quota check, reported for the most constrained window."""

    allowed: bool
    limit: int
    remaining: int
    reset: int
    retry_after: int = 0

    @property
    def headers(self) -> dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after)
        return headers


class UploadQuota:
    def __init__(self, windows: list[QuotaWindow]) -> None:
        self.windows = windows

    @classmethod
    def from_settings(cls, settings: Settings) -> "UploadQuota":
        return cls([
            QuotaWindow("hour", HOUR, settings.upload_quota_per_hour),
            QuotaWindow("day", DAY, settings.upload_quota_per_day),
        ])

    @staticmethod
    def key(user_id: int, window: QuotaWindow, now: int) -> str:
        return f"upload_quota:{user_id}:{window.name}:{window.bucket(now)}"

    async def consume(
        self,
        user_id: int,
        redis: Redis | None,
        now: float | None = None,
    ) -> QuotaStatus | None:
        """
        Count one upload against every window.

        Returns the status of the window closest to its limit. When any window
        is already used up the attempt is refunded and the status with the
        longest wait is returned, with `allowed` False. Returns None when Redis
        is missing or failing; the upload then goes through uncounted.
        """
        if redis is None:
            return None
        ts = int(time.time() if now is None else now)
        keys = [self.key(user_id, window, ts) for window in self.windows]
        try:
            async with redis.pipeline(transaction=True) as pipe:
                for key, window in zip(keys, self.windows, strict=True):
                    pipe.incr(key)
                    pipe.expire(key, window.seconds)
                results = await pipe.execute()
            counts = [int(count) for count in results[::2]]
            statuses = [
                self._status(window, count, ts)
                for window, count in zip(self.windows, counts, strict=True)
            ]
            denied = [status for status in statuses if not status.allowed]
            if denied:
                async with redis.pipeline(transaction=True) as pipe:
                    for key in keys:
                        pipe.decr(key)
                    await pipe.execute()
        except RedisError as e:
            logger.warning("upload_quota_unavailable", extra={"user_id": user_id, "error": str(e)})
            return None

        if denied:
            status = max(denied, key=lambda s: s.retry_after)
            logger.info(
                "upload_quota_exceeded",
                extra={"user_id": user_id, "retry_after": status.retry_after},
            )
            return status
        return min(statuses, key=lambda s: s.remaining)

    @staticmethod
    def _status(window: QuotaWindow, count: int, now: int) -> QuotaStatus:
        reset = window.resets_at(now)
        if count > window.limit:
            return QuotaStatus(
                allowed=False, limit=window.limit, remaining=0, reset=reset,
                retry_after=reset - now,
            )
        return QuotaStatus(
            allowed=True, limit=window.limit, remaining=window.limit - count, reset=reset,
        )
