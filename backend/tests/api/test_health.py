"""Tests for the health check endpoint."""
from unittest.mock import AsyncMock, MagicMock

from httpx import AsyncClient
from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError

from core.redis import set_redis_client


async def test_health_endpoint_returns_200(client: AsyncClient) -> None:
    """Test that the health endpoint returns 200 OK."""
    response = await client.get("/health")
    assert response.status_code == 200


async def test_health_endpoint_returns_healthy_status(client: AsyncClient) -> None:
    """Test that the health endpoint returns healthy status."""
    response = await client.get("/health")
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "healthy"


async def test_health_endpoint_response_structure(client: AsyncClient) -> None:
    """Test that the health endpoint returns the expected structure."""
    response = await client.get("/health")
    assert set(response.json()) == {"status", "database", "redis"}


async def test_health_endpoint_redis_connected(client: AsyncClient) -> None:
    """Health reports Redis as connected when a ping succeeds."""
    redis_client = MagicMock(spec=Redis)
    redis_client.ping = AsyncMock(return_value=True)
    set_redis_client(redis_client)
    try:
        response = await client.get("/health")
    finally:
        set_redis_client(None)
    assert response.json()["redis"] == "connected"


async def test_health_endpoint_redis_unavailable(client: AsyncClient) -> None:
    """A failing Redis leaves the app healthy, with Redis reported unavailable."""
    redis_client = MagicMock(spec=Redis)
    redis_client.ping = AsyncMock(side_effect=RedisConnectionError("refused"))
    set_redis_client(redis_client)
    try:
        response = await client.get("/health")
    finally:
        set_redis_client(None)
    data = response.json()

    assert data["status"] == "healthy"
    assert data["database"] == "healthy"
    assert data["redis"] == "unavailable"


async def test_health_endpoint_no_redis_client(client: AsyncClient) -> None:
    """Without any Redis client the check still answers."""
    response = await client.get("/health")
    assert response.json()["redis"] == "unavailable"
