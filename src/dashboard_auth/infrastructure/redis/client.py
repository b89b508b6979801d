"""Redis Client for Dashboard Auth Service

Provides async Redis client management for session records and
OAuth handshake state.
"""

import logging
from typing import Optional

import redis.asyncio as redis

from dashboard_auth.config.settings import get_settings

logger = logging.getLogger(__name__)


class RedisClient:
    """Async Redis client wrapper"""

    def __init__(self):
        self._client: Optional[redis.Redis] = None

    async def connect(self):
        """Establish Redis connection from settings"""
        if not self._client:
            settings = get_settings()
            self._client = redis.from_url(settings.redis_url, decode_responses=True)
            await self._client.ping()
            logger.info(
                f"Connected to Redis: "
                f"{settings.redis_host}:{settings.redis_port}/{settings.redis_db}"
            )

    async def disconnect(self):
        """Close Redis connection"""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Disconnected from Redis")

    def get_client(self) -> redis.Redis:
        """Get the underlying Redis client

        Returns:
            Redis client instance

        Raises:
            RuntimeError: If client not connected
        """
        if not self._client:
            raise RuntimeError("Redis client not connected. Call connect() first.")
        return self._client


# Global Redis client instance
_redis_client: Optional[RedisClient] = None


async def get_redis_client() -> RedisClient:
    """Get or create global Redis client

    Returns:
        Connected RedisClient instance
    """
    global _redis_client
    if not _redis_client:
        _redis_client = RedisClient()
        await _redis_client.connect()
    return _redis_client


async def close_redis_client():
    """Close global Redis client"""
    global _redis_client
    if _redis_client:
        await _redis_client.disconnect()
        _redis_client = None
