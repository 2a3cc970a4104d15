"""
Port interfaces (ABCs) for the signals bounded context.

Ports define the contracts that the domain requires from the outside world.
Infrastructure adapters implement these interfaces.
The domain layer never depends on concrete implementations.
All ports are async: every call is an I/O suspension point.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from marketlens.domain.signals.entities import (
    Candle,
    DirectionalOpinion,
    MarketSnapshot,
    MultiTimeframeAnalysis,
    OnChainMetrics,
    SentimentBreakdown,
    SignalScore,
    Ticker24h,
)


class CacheStorePort(ABC):
    """Port for a key-value store with per-key expiry.

    Values are opaque strings; serialization belongs to the caller.
    Implementations may raise on connectivity problems; the cache-aside
    layer absorbs those errors.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when absent or expired."""
        raise NotImplementedError

    @abstractmethod
    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a value that expires after ``ttl_seconds``."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a key. Missing keys are ignored."""
        raise NotImplementedError

    async def ping(self) -> bool:
        """Return True when the store is reachable."""
        return True

    async def close(self) -> None:
        """Release connections held by the store."""
        return None


class MarketDataPort(ABC):
    """Port for exchange market data."""

    @abstractmethod
    async def get_current_price(self, symbol: str) -> float:
        """Return the last traded price.

        Raises:
            MarketDataUnavailableError: If the exchange cannot answer.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_24h_stats(self, symbol: str) -> Ticker24h:
        """Return rolling 24h statistics.

        Raises:
            MarketDataUnavailableError: If the exchange cannot answer.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_candles(
        self, symbol: str, interval: str, limit: int = 100
    ) -> list[Candle]:
        """Return up to ``limit`` candles, oldest first. May be empty.

        Raises:
            MarketDataUnavailableError: If the exchange cannot answer.
        """
        raise NotImplementedError


class OnChainMetricsPort(ABC):
    """Port for an on-chain metrics provider."""

    @abstractmethod
    async def fetch_metrics(self, symbol: str) -> dict[str, Any]:
        """Return whichever on-chain metric fields the provider knows.

        The mapping may be partially populated; absent keys are filled
        with baseline constants by the caller.
        """
        raise NotImplementedError


class SentimentProviderPort(ABC):
    """Port for one independent social-sentiment provider."""

    name: str = "sentiment"

    @abstractmethod
    async def fetch_score(self, symbol: str) -> float:
        """Return a sentiment score in [-100, 100], or raise."""
        raise NotImplementedError


class ReasoningBackendPort(ABC):
    """Port for a model reasoning backend that answers in JSON."""

    @abstractmethod
    async def complete_json(
        self,
        model: str,
        messages: list[dict[str, str]],
        schema_name: str,
        schema: dict[str, Any],
    ) -> str:
        """Return the raw JSON content produced for a schema-constrained request."""
        raise NotImplementedError


class SignalSourcePort(ABC):
    """Port for a source producing one normalized SignalScore per symbol.

    Implementations must never raise: failures become the documented
    neutral default.
    """

    source_name: str = "signal"

    @abstractmethod
    async def fetch_signal(self, symbol: str) -> SignalScore:
        raise NotImplementedError


class AnalystPort(ABC):
    """Port for an analyst persona producing a DirectionalOpinion.

    Implementations must never raise: failures become the fallback opinion.
    """

    name: str = "analyst"

    @abstractmethod
    async def analyze(
        self, snapshot: MarketSnapshot, signals: Sequence[SignalScore] = ()
    ) -> DirectionalOpinion:
        raise NotImplementedError


class TrendAnalysisPort(ABC):
    """Port exposing the per-interval trend vote behind the technical signal."""

    @abstractmethod
    async def analyze(self, symbol: str) -> MultiTimeframeAnalysis:
        raise NotImplementedError


class OnChainDetailPort(ABC):
    """Port exposing the full on-chain metrics behind the on-chain signal."""

    @abstractmethod
    async def get_metrics(self, symbol: str) -> OnChainMetrics:
        """Return metrics, or the neutral default. Never raises."""
        raise NotImplementedError


class SentimentDetailPort(ABC):
    """Port exposing the per-provider breakdown behind the sentiment signal."""

    @abstractmethod
    async def get_breakdown(self, symbol: str) -> SentimentBreakdown:
        """Return the breakdown, or the unavailable default. Never raises."""
        raise NotImplementedError
