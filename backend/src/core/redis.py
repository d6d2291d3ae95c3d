"""Process-wide Redis connection. Redis only holds upload quota counters."""
import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from core.config import Settings

logger = logging.getLogger(__name__)


async def connect_redis(url: str) -> Redis | None:
    """Open a connection and ping it. None when the server is unreachable."""
    client = Redis.from_url(url, max_connections=10)
    try:
        await client.ping()
    except RedisError as e:
        logger.warning("redis_unreachable", extra={"error": str(e)})
        await client.aclose()
        return None
    logger.info("redis_connected")
    return client


async def connect_from_settings(settings: Settings) -> Redis | None:
    if not settings.redis_enabled:
        logger.info("redis_disabled")
        return None
    return await connect_redis(settings.redis_url)


async def ping(client: Redis | None) -> bool:
    if client is None:
        return False
    try:
        return bool(await client.ping())
    except RedisError:
        return False


class _RedisState:
    """Holder for the connection opened at startup."""

    client: Redis | None = None


_state = _RedisState()


def get_redis_client() -> Redis | None:
    return _state.client


def set_redis_client(client: Redis | None) -> None:
    _state.client = client
