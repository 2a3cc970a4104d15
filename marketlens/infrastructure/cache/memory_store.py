"""
Adapter: In-process cache store.

Implements CacheStorePort with a dict and monotonic-clock expiry.
Used for local development and tests; entries are not shared
between processes.
"""

import time
from typing import Callable, Optional

from marketlens.domain.signals.ports import CacheStorePort


class InMemoryCacheStore(CacheStorePort):
    """Dictionary-backed store.

    Expired entries are dropped when read and swept on every write.
    Once ``max_entries`` live entries are held, a new key evicts the
    oldest one.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int = 10_000,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._clock = clock
        self._max_entries = max_entries
        self._entries: dict[str, tuple[str, Optional[float]]] = {}

    async def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._expired(expires_at, self._clock()):
            del self._entries[key]
            return None
        return value

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        now = self._clock()
        self._sweep(now)
        self._entries.pop(key, None)
        while len(self._entries) >= self._max_entries:
            del self._entries[next(iter(self._entries))]
        expires_at = now + ttl_seconds if ttl_seconds > 0 else None
        self._entries[key] = (value, expires_at)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def _sweep(self, now: float) -> None:
        expired = [k for k, (_, exp) in self._entries.items() if self._expired(exp, now)]
        for key in expired:
            del self._entries[key]

    @staticmethod
    def _expired(expires_at: Optional[float], now: float) -> bool:
        return expires_at is not None and now >= expires_at

    def __len__(self) -> int:
        return len(self._entries)
