"""
Adapter: Disabled cache store.

Implements CacheStorePort with no-ops. Used when no cache is
configured: every read misses and every write is discarded.
"""

from typing import Optional

from marketlens.domain.signals.ports import CacheStorePort


class NullCacheStore(CacheStorePort):
    """Store that never holds anything."""

    async def get(self, key: str) -> Optional[str]:
        return None

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        return None

    async def delete(self, key: str) -> None:
        return None

    async def ping(self) -> bool:
        return False
