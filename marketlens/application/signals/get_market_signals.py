"""
Use case: Collect every configured signal score for a symbol.

Input: SymbolQuery (symbol)
Output: MarketSignalsResult
Side effects: Upstream calls and cache writes inside the signal adapters.
Failure cases: None. A source that raises is dropped from the result.
"""

import asyncio
import logging
from typing import Sequence

from marketlens.application.signals.dtos import MarketSignalsResult, SymbolQuery
from marketlens.domain.signals.entities import SignalScore
from marketlens.domain.signals.ports import SignalSourcePort

logger = logging.getLogger(__name__)


async def collect_signals(
    sources: Sequence[SignalSourcePort], symbol: str
) -> list[SignalScore]:
    """Query all sources concurrently and keep the ones that settled."""
    results = await asyncio.gather(
        *(source.fetch_signal(symbol) for source in sources),
        return_exceptions=True,
    )
    signals: list[SignalScore] = []
    for source, result in zip(sources, results):
        if isinstance(result, BaseException):
            logger.warning(
                "Signal source %s raised for %s: %s",
                source.source_name,
                symbol,
                type(result).__name__,
            )
            continue
        signals.append(result)
    return signals


class GetMarketSignalsUseCase:
    """Gathers the normalized scores of all signal sources."""

    def __init__(self, sources: Sequence[SignalSourcePort]) -> None:
        self._sources = list(sources)

    async def execute(self, query: SymbolQuery) -> MarketSignalsResult:
        logger.info("Collecting market signals for symbol=%s", query.symbol)
        signals = await collect_signals(self._sources, query.symbol)
        return MarketSignalsResult(symbol=query.symbol, signals=signals)
