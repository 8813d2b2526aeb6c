"""Redis-backed cache shared by every API instance."""

import logging

import redis.asyncio as redis

logger = logging.getLogger(__name__)


class RedisCache:
    """
    Cache backed by Redis, so identities cached by one instance serve all.

    Attributes:
        redis_url: Redis connection URL
        key_prefix: Prefix added to every key (keeps app keys apart in a shared DB)
    """

    def __init__(self, redis_url: str, key_prefix: str = "gatekeeper:", client: redis.Redis | None = None):
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.redis: redis.Redis | None = client

    async def start(self) -> None:
        """Open the connection pool and check connectivity."""
        if self.redis is None:
            self.redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                health_check_interval=30,
            )
        await self.redis.ping()
        logger.info("Redis cache started", extra={"redis_url": self.redis_url})

    async def stop(self) -> None:
        if self.redis is not None:
            await self.redis.aclose()
            logger.info("Redis cache stopped")

    def _client(self) -> redis.Redis:
        if self.redis is None:
            raise RuntimeError("Redis cache not started. Call start() first.")
        return self.redis

    async def get(self, key: str) -> str | None:
        return await self._client().get(self.key_prefix + key)

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._client().setex(self.key_prefix + key, ttl_seconds, value)

    async def delete(self, key: str) -> None:
        await self._client().delete(self.key_prefix + key)
