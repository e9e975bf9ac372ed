from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff

from leadfunnel.core.config import settings
from leadfunnel.core.exceptions import ServiceUnavailableError
from leadfunnel.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)

# Global Redis connection pool
_redis_pool: Optional[ConnectionPool] = None
_redis_client: Optional[redis.Redis] = None


async def init_redis_pool() -> None:
    """Initialize Redis connection pool."""
    global _redis_pool, _redis_client

    if _redis_pool is not None:
        return

    try:
        retry = Retry(
            backoff=ExponentialBackoff(base=1),
            retries=3,
        )

        _redis_pool = ConnectionPool.from_url(
            settings.redis_url,
            max_connections=settings.redis_max_connections,
            socket_timeout=settings.redis_socket_timeout,
            socket_connect_timeout=settings.redis_socket_connect_timeout,
            retry=retry,
            retry_on_error=[redis.ConnectionError, redis.TimeoutError],
            health_check_interval=30,
            decode_responses=True,
        )

        _redis_client = redis.Redis(connection_pool=_redis_pool)

        await _redis_client.ping()

        logger.info(
            "redis.connected",
            url=settings.redis_url,
            max_connections=settings.redis_max_connections,
        )

    except Exception as e:
        logger.error("redis.connection_failed", error=str(e))
        _redis_pool = None
        _redis_client = None
        raise ServiceUnavailableError(
            message="Redis connection failed",
            details={"error": str(e)},
        )


async def get_redis_client() -> redis.Redis:
    """Get Redis client instance."""
    if _redis_client is None:
        await init_redis_pool()

    return _redis_client


async def close_redis_pool() -> None:
    """Close Redis connection pool."""
    global _redis_pool, _redis_client

    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None

    if _redis_pool:
        await _redis_pool.disconnect()
        _redis_pool = None

    logger.info("redis.connections_closed")


async def health_check() -> Dict[str, Any]:
    """Check Redis health."""
    try:
        client = await get_redis_client()

        loop = asyncio.get_running_loop()
        start_time = loop.time()
        pong = await client.ping()
        response_time = (loop.time() - start_time) * 1000

        if not pong:
            return {
                "status": "unhealthy",
                "error": "Ping failed",
                "response_time_ms": response_time,
            }

        info = await client.info("server")
        return {
            "status": "healthy",
            "response_time_ms": response_time,
            "version": info.get("redis_version"),
        }

    except Exception as e:
        logger.error("redis.health_check_failed", error=str(e))
        return {
            "status": "unhealthy",
            "error": str(e),
            "response_time_ms": None,
        }
