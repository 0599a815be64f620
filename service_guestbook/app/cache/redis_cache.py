"""
Redis caching layer for the Guestbook service.
"""

from typing import Dict, Any, Optional

import redis.asyncio as redis
from shared.logging import get_logger
from shared.errors import GuestbookException, CacheError


class RedisCache:
    """Thin adapter over a shared Redis client.

    Every command failure surfaces as CacheError; a missing key is a normal
    ``None`` result, not an error.
    """

    def __init__(self, redis_url: str, *, timeout: float = 5.0, client: Optional[redis.Redis] = None):
        self.redis_url = redis_url
        self.timeout = timeout
        self.logger = get_logger("guestbook.cache.redis")
        self.redis: Optional[redis.Redis] = client

    async def start(self):
        """Start the Redis cache.

        An unreachable server at startup is logged, not raised: the client
        reconnects on use and the service runs store-only meanwhile.
        """
        if self.redis is None:
            self.redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=self.timeout,
                socket_timeout=self.timeout,
                health_check_interval=30
            )

        try:
            await self.redis.ping()
            self.logger.info("Redis cache started")
        except Exception as e:
            self.logger.warning("Redis unreachable at startup", error=str(e))

    async def stop(self):
        """Stop the Redis cache."""
        if self.redis:
            await self.redis.aclose()
            self.logger.info("Redis cache stopped")

    def _client(self) -> redis.Redis:
        if self.redis is None:
            raise CacheError("Cache not started")
        return self.redis

    async def ping(self) -> None:
        try:
            await self._client().ping()
        except GuestbookException:
            raise
        except Exception as e:
            raise CacheError("Ping failed", {"error": str(e)}) from e

    async def get(self, key: str) -> Optional[str]:
        """Return the value stored at ``key`` or None when absent."""
        try:
            return await self._client().get(key)
        except GuestbookException:
            raise
        except Exception as e:
            raise CacheError("GET failed", {"key": key, "error": str(e)}) from e

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._client().set(key, value, ex=ttl_seconds)
        except GuestbookException:
            raise
        except Exception as e:
            raise CacheError("SET failed", {"key": key, "error": str(e)}) from e

        self.logger.debug("Cached value", cache_key=key, ttl=ttl_seconds)

    async def delete(self, key: str) -> int:
        """Delete ``key``; returns the number of keys removed."""
        try:
            return await self._client().delete(key)
        except GuestbookException:
            raise
        except Exception as e:
            raise CacheError("DEL failed", {"key": key, "error": str(e)}) from e

    async def increment(self, key: str) -> int:
        try:
            return await self._client().incr(key)
        except GuestbookException:
            raise
        except Exception as e:
            raise CacheError("INCR failed", {"key": key, "error": str(e)}) from e

    async def server_info(self, section: str = "stats") -> Dict[str, Any]:
        """Return the parsed ``INFO <section>`` reply."""
        try:
            return await self._client().info(section)
        except GuestbookException:
            raise
        except Exception as e:
            raise CacheError("INFO failed", {"section": section, "error": str(e)}) from e
