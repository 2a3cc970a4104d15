"""
Cache-aside layer over a key-value store with per-key TTL.

Implements:
- get-or-compute: look up, compute on miss, best-effort store of the
  values the caller accepts
- JSON serialization of cached values
- Degradation: every store failure is treated as a miss or a skipped
  write; computation always proceeds

The cache is an optimization, never a dependency. Concurrent misses on
the same key are not coalesced: each caller computes independently and
the last write wins.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from marketlens.domain.signals.ports import CacheStorePort

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CacheStats:
    """Counters for cache-aside activity since startup."""

    hits: int = 0
    misses: int = 0
    errors: int = 0
    writes: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "errors": self.errors,
            "writes": self.writes,
        }


def _identity(value: Any) -> Any:
    return value


class CacheAside:
    """Get-or-compute wrapper around a CacheStorePort.

    Store errors are logged at WARNING once per incident: the first
    failure after a healthy period. Further failures log at DEBUG until
    a store operation succeeds again.
    """

    def __init__(self, store: CacheStorePort) -> None:
        self._store = store
        self._degraded = False
        self._stats = CacheStats()

    @property
    def stats(self) -> CacheStats:
        return self._stats

    @property
    def degraded(self) -> bool:
        """True while the store is failing."""
        return self._degraded

    async def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Awaitable[T]],
        ttl_seconds: int,
        serialize: Optional[Callable[[T], Any]] = None,
        deserialize: Optional[Callable[[Any], T]] = None,
        should_store: Optional[Callable[[T], bool]] = None,
    ) -> T:
        """Return the cached value for ``key`` or compute and store it.

        Args:
            key: Cache key. Callers bucket volatile inputs into the key.
            compute: Coroutine factory producing the fresh value.
            ttl_seconds: Expiry of the stored value.
            serialize: Converts the value into JSON-serializable data.
            deserialize: Rebuilds the value from the decoded JSON.
            should_store: Decides whether a computed value is written
                back. Values it rejects are returned but not cached.

        Returns:
            The cached value on a hit, else the freshly computed one.
            Exceptions raised by ``compute`` propagate unchanged.
        """
        serialize = serialize or _identity
        deserialize = deserialize or _identity

        cached = await self.get(key, deserialize)
        if cached is not None:
            return cached

        value = await compute()
        if should_store is not None and not should_store(value):
            logger.debug("Cache SKIP: %s", key)
            return value
        await self.set(key, value, ttl_seconds, serialize)
        return value

    async def get(
        self, key: str, deserialize: Optional[Callable[[Any], T]] = None
    ) -> Optional[T]:
        """Return the decoded value, or None on a miss of any kind."""
        deserialize = deserialize or _identity
        try:
            raw = await self._store.get(key)
        except Exception as exc:
            self._record_failure("GET", key, exc)
            self._stats.misses += 1
            return None
        self._record_success()

        if raw is None:
            self._stats.misses += 1
            logger.debug("Cache MISS: %s", key)
            return None

        try:
            value = deserialize(json.loads(raw))
        except Exception:
            self._stats.misses += 1
            logger.warning("Discarding undecodable cache entry for key %s", key)
            return None

        self._stats.hits += 1
        logger.debug("Cache HIT: %s", key)
        return value

    async def set(
        self,
        key: str,
        value: T,
        ttl_seconds: int,
        serialize: Optional[Callable[[T], Any]] = None,
    ) -> bool:
        """Best-effort store. Returns True when the write succeeded."""
        serialize = serialize or _identity
        try:
            payload = json.dumps(serialize(value), default=str)
        except (TypeError, ValueError):
            logger.warning("Value for key %s is not JSON-serializable; not cached", key)
            return False

        try:
            await self._store.set_with_expiry(key, payload, ttl_seconds)
        except Exception as exc:
            self._record_failure("SET", key, exc)
            return False

        self._record_success()
        self._stats.writes += 1
        logger.debug("Cache SET: %s (TTL: %ds)", key, ttl_seconds)
        return True

    async def delete(self, key: str) -> bool:
        """Best-effort delete. Returns True when the delete succeeded."""
        try:
            await self._store.delete(key)
        except Exception as exc:
            self._record_failure("DEL", key, exc)
            return False
        self._record_success()
        return True

    def _record_failure(self, operation: str, key: str, exc: Exception) -> None:
        self._stats.errors += 1
        if not self._degraded:
            self._degraded = True
            logger.warning(
                "Cache store %s failed for key %s (%s); serving uncached data",
                operation,
                key,
                type(exc).__name__,
            )
        else:
            logger.debug("Cache store %s failed for key %s", operation, key)

    def _record_success(self) -> None:
        if self._degraded:
            self._degraded = False
            logger.info("Cache store recovered")
