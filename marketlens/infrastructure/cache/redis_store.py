"""
Adapter: Redis cache store.

Implements CacheStorePort on top of redis.asyncio.
Works with local Redis and hosted Redis over TLS (rediss:// URLs
carrying the access token as password).
"""

import logging
from typing import Optional

import redis.asyncio as redis

from marketlens.domain.signals.ports import CacheStorePort

logger = logging.getLogger(__name__)


class RedisCacheStore(CacheStorePort):
    """Redis-backed key-value store with per-key expiry.

    Errors are not handled here: the cache-aside layer decides how a
    failing store degrades.
    """

    def __init__(
        self,
        redis_url: Optional[str] = None,
        client: Optional[redis.Redis] = None,
        socket_timeout: float = 2.0,
    ) -> None:
        if client is None:
            if not redis_url:
                raise ValueError("RedisCacheStore requires a redis_url or a client")
            client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_timeout=socket_timeout,
                socket_connect_timeout=socket_timeout,
            )
        self._redis = client

    async def get(self, key: str) -> Optional[str]:
        return await self._redis.get(key)

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        if ttl_seconds > 0:
            await self._redis.setex(key, ttl_seconds, value)
        else:
            await self._redis.set(key, value)

    async def delete(self, key: str) -> None:
        await self._redis.delete(key)

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except Exception:
            logger.warning("Redis PING failed", exc_info=True)
            return False

    async def close(self) -> None:
        await self._redis.aclose()
