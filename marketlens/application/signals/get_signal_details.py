"""
Use cases: Detailed views of each signal source.

Input: SymbolQuery (symbol)
Output: MultiTimeframeAnalysis | OnChainMetrics | SentimentBreakdown
Side effects: Upstream calls and cache writes inside the adapters.
Failure cases: None. The adapters return neutral defaults on failure.
"""

import logging

from marketlens.application.signals.dtos import SymbolQuery
from marketlens.domain.signals.entities import (
    MultiTimeframeAnalysis,
    OnChainMetrics,
    SentimentBreakdown,
)
from marketlens.domain.signals.ports import (
    OnChainDetailPort,
    SentimentDetailPort,
    TrendAnalysisPort,
)

logger = logging.getLogger(__name__)


class GetMultiTimeframeAnalysisUseCase:
    """Returns the per-interval trend votes for a symbol."""

    def __init__(self, trend_port: TrendAnalysisPort) -> None:
        self._trend_port = trend_port

    async def execute(self, query: SymbolQuery) -> MultiTimeframeAnalysis:
        logger.info("Multi-timeframe analysis for symbol=%s", query.symbol)
        return await self._trend_port.analyze(query.symbol)


class GetOnChainMetricsUseCase:
    """Returns the on-chain metrics for a symbol."""

    def __init__(self, on_chain_port: OnChainDetailPort) -> None:
        self._on_chain_port = on_chain_port

    async def execute(self, query: SymbolQuery) -> OnChainMetrics:
        logger.info("On-chain metrics for symbol=%s", query.symbol)
        return await self._on_chain_port.get_metrics(query.symbol)


class GetSentimentUseCase:
    """Returns the per-provider sentiment breakdown for a symbol."""

    def __init__(self, sentiment_port: SentimentDetailPort) -> None:
        self._sentiment_port = sentiment_port

    async def execute(self, query: SymbolQuery) -> SentimentBreakdown:
        logger.info("Sentiment breakdown for symbol=%s", query.symbol)
        return await self._sentiment_port.get_breakdown(query.symbol)
