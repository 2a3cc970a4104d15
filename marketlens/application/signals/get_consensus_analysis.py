"""
Use case: Get the fused analyst consensus for a market snapshot.

Input: MarketSnapshot
Output: ConsensusResult
Side effects: Model calls, signal source calls, at most one cache write
    on a miss.
Failure cases: ConsensusInputError when an adapter leaks an invalid
    opinion. Analyst and signal failures degrade to neutral defaults.

Results are cached under ``consensus:{SYMBOL}:{price_bucket}``: snapshots
whose prices are within about 1% of each other share one analysis. A
consensus in which every analyst fell back is returned but not cached,
so the next request retries the analysts.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from marketlens.application.signals import cache_keys
from marketlens.application.signals.cache_aside import CacheAside
from marketlens.application.signals.cache_keys import CacheTTL
from marketlens.application.signals.get_market_signals import collect_signals
from marketlens.domain.signals.consensus import ConsensusEngine
from marketlens.domain.signals.entities import (
    ConsensusResult,
    MarketSnapshot,
    SignalScore,
    WeightedOpinion,
)
from marketlens.domain.signals.ports import AnalystPort, SignalSourcePort

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeightedAnalyst:
    """An analyst with its relative trust weight in the consensus."""

    analyst: AnalystPort
    weight: float


class GetConsensusAnalysisUseCase:
    """Orchestrates signals, analysts and the consensus engine.

    The first analyst is the primary one: it sets the consensus
    timeframe and is the reference for the agreement score.
    """

    def __init__(
        self,
        analysts: Sequence[WeightedAnalyst],
        cache: Optional[CacheAside] = None,
        signal_sources: Sequence[SignalSourcePort] = (),
        engine: Optional[ConsensusEngine] = None,
        ttl_seconds: int = CacheTTL.VERY_LONG,
    ) -> None:
        if not analysts:
            raise ValueError("At least one analyst is required")
        self._analysts = list(analysts)
        self._cache = cache
        self._signal_sources = list(signal_sources)
        self._engine = engine or ConsensusEngine()
        self._ttl_seconds = ttl_seconds

    async def execute(self, snapshot: MarketSnapshot) -> ConsensusResult:
        """Run the consensus use case.

        Args:
            snapshot: Market data for the symbol to analyze.

        Returns:
            The cached consensus for this price bucket, or a fresh one.

        Raises:
            ConsensusInputError: If an analyst produced an invalid opinion.
        """
        key = cache_keys.consensus(snapshot.symbol, snapshot.current_price)
        logger.info("Consensus requested for symbol=%s key=%s", snapshot.symbol, key)

        if self._cache is None:
            return await self._compute(snapshot)
        return await self._cache.get_or_compute(
            key,
            lambda: self._compute(snapshot),
            self._ttl_seconds,
            serialize=ConsensusResult.to_dict,
            deserialize=ConsensusResult.from_dict,
            should_store=_has_real_opinion,
        )

    async def _compute(self, snapshot: MarketSnapshot) -> ConsensusResult:
        signals: list[SignalScore] = []
        if self._signal_sources:
            signals = await collect_signals(self._signal_sources, snapshot.symbol)

        opinions = await asyncio.gather(
            *(item.analyst.analyze(snapshot, signals) for item in self._analysts)
        )
        weighted = [
            WeightedOpinion(weight=item.weight, opinion=opinion)
            for item, opinion in zip(self._analysts, opinions)
        ]
        result = self._engine.fuse(weighted)
        logger.info(
            "Consensus for %s: %s (confidence %s, agreement %d)",
            snapshot.symbol,
            result.consensus.signal.value,
            result.consensus.confidence,
            result.agreement,
        )
        return result


def _has_real_opinion(result: ConsensusResult) -> bool:
    if result.all_fallback:
        logger.warning("Every analyst fell back; consensus not cached")
        return False
    return True
