"""
Adapter: Multi-timeframe technical signal.

Fetches candles for several intervals concurrently from the exchange,
classifies each interval's trend and aggregates the votes into one
SignalScore (source ``technical``).

A failed interval fetch counts as an interval without data. The adapter
never raises.
"""

import asyncio
import logging
from typing import Sequence

from marketlens.domain.signals.entities import (
    Candle,
    MultiTimeframeAnalysis,
    SignalScore,
)
from marketlens.domain.signals.ports import (
    MarketDataPort,
    SignalSourcePort,
    TrendAnalysisPort,
)
from marketlens.domain.signals.trend import (
    DEFAULT_CANDLE_LIMIT,
    DEFAULT_INTERVALS,
    aggregate_trends,
    classify_trend,
    signal_to_unit_score,
)

logger = logging.getLogger(__name__)


class TechnicalSignalAdapter(SignalSourcePort, TrendAnalysisPort):
    """SignalSourcePort producing the multi-timeframe trend vote."""

    source_name = "technical"

    def __init__(
        self,
        market_data: MarketDataPort,
        intervals: Sequence[str] = DEFAULT_INTERVALS,
        candle_limit: int = DEFAULT_CANDLE_LIMIT,
    ) -> None:
        self._market_data = market_data
        self._intervals = tuple(intervals)
        self._candle_limit = candle_limit

    async def analyze(self, symbol: str) -> MultiTimeframeAnalysis:
        """Run the per-interval trend vote for ``symbol``."""
        candle_sets = await asyncio.gather(
            *(self._fetch_candles(symbol, interval) for interval in self._intervals)
        )
        trends = [
            classify_trend(interval, candles)
            for interval, candles in zip(self._intervals, candle_sets)
        ]
        analysis = aggregate_trends(symbol, trends)
        logger.debug(
            "MTA %s: %s (%d/%d intervals with data)",
            symbol,
            analysis.overall_signal.value,
            analysis.intervals_with_data,
            len(trends),
        )
        return analysis

    async def fetch_signal(self, symbol: str) -> SignalScore:
        try:
            analysis = await self.analyze(symbol)
        except Exception as exc:
            logger.warning("Technical signal failed for %s: %s", symbol, exc)
            return SignalScore.neutral(self.source_name, "Technical data unavailable.")

        return SignalScore(
            source=self.source_name,
            score=signal_to_unit_score(analysis.overall_signal),
            data_points=analysis.intervals_with_data,
            summary=analysis.overall_summary,
            details={
                "signal": analysis.overall_signal.value,
                "timeframes": {
                    t.interval: t.vote.value for t in analysis.timeframes
                },
            },
        )

    async def _fetch_candles(self, symbol: str, interval: str) -> list[Candle]:
        try:
            return await self._market_data.get_candles(
                symbol, interval, self._candle_limit
            )
        except Exception as exc:
            logger.warning(
                "Candle fetch failed for %s %s: %s", symbol, interval, exc
            )
            return []
