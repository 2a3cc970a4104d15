"""
Adapter: Sentiment signal.

Queries every configured sentiment provider concurrently, each under
its own timeout, and averages the scores of the providers that answered.
Failed providers are excluded, never counted as zero.

Results are cached for one hour. The adapter never raises.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

from marketlens.application.signals import cache_keys
from marketlens.application.signals.cache_aside import CacheAside
from marketlens.application.signals.cache_keys import CacheTTL
from marketlens.domain.signals.entities import SentimentBreakdown, SignalScore
from marketlens.domain.signals.ports import (
    SentimentDetailPort,
    SentimentProviderPort,
    SignalSourcePort,
)

logger = logging.getLogger(__name__)

UNAVAILABLE_SUMMARY = "Sentiment data unavailable."


def sentiment_summary(score: float) -> str:
    if score > 0.5:
        return "Extreme bullish sentiment across social media."
    if score > 0.1:
        return "Moderately positive sentiment, with growing interest."
    if score > -0.1:
        return "Neutral market sentiment."
    if score > -0.5:
        return "Slightly negative sentiment, caution advised."
    return "Overwhelmingly bearish sentiment, fear in the market."


def combine_scores(
    symbol: str, scores: dict[str, float], now: Optional[datetime] = None
) -> SentimentBreakdown:
    """Average provider scores on [-100, 100] into a [-1, 1] breakdown."""
    now = now or datetime.now(timezone.utc)
    if not scores:
        return SentimentBreakdown(
            symbol=symbol,
            score=0.0,
            source_count=0,
            sources={},
            summary=UNAVAILABLE_SUMMARY,
            last_updated=now,
        )
    mean = sum(scores.values()) / len(scores)
    normalized = round(max(-1.0, min(1.0, mean / 100)), 2)
    return SentimentBreakdown(
        symbol=symbol,
        score=normalized,
        source_count=len(scores),
        sources=dict(scores),
        summary=sentiment_summary(normalized),
        last_updated=now,
    )


class SentimentSignalAdapter(SignalSourcePort, SentimentDetailPort):
    """SignalSourcePort averaging independent sentiment providers."""

    source_name = "sentiment"

    def __init__(
        self,
        providers: Sequence[SentimentProviderPort],
        cache: Optional[CacheAside] = None,
        provider_timeout: float = 10.0,
    ) -> None:
        self._providers = list(providers)
        self._cache = cache
        self._provider_timeout = provider_timeout

    async def get_breakdown(self, symbol: str) -> SentimentBreakdown:
        """Return the per-provider breakdown for ``symbol``."""
        if self._cache is None:
            return await self._collect(symbol)
        try:
            return await self._cache.get_or_compute(
                cache_keys.sentiment(symbol),
                lambda: self._collect(symbol),
                CacheTTL.LONG,
                serialize=SentimentBreakdown.to_dict,
                deserialize=SentimentBreakdown.from_dict,
            )
        except Exception as exc:
            logger.warning("Sentiment unavailable for %s: %s", symbol, exc)
            return combine_scores(symbol, {})

    async def fetch_signal(self, symbol: str) -> SignalScore:
        breakdown = await self.get_breakdown(symbol)
        return SignalScore(
            source=self.source_name,
            score=breakdown.score,
            data_points=breakdown.source_count,
            summary=breakdown.summary,
            details={"sources": dict(breakdown.sources)},
        )

    async def _collect(self, symbol: str) -> SentimentBreakdown:
        results = await asyncio.gather(
            *(self._fetch_one(provider, symbol) for provider in self._providers),
            return_exceptions=True,
        )
        scores: dict[str, float] = {}
        for provider, result in zip(self._providers, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "Sentiment provider %s failed for %s: %s",
                    provider.name,
                    symbol,
                    type(result).__name__,
                )
                continue
            scores[provider.name] = result
        return combine_scores(symbol, scores)

    async def _fetch_one(self, provider: SentimentProviderPort, symbol: str) -> float:
        return await asyncio.wait_for(
            provider.fetch_score(symbol), timeout=self._provider_timeout
        )
