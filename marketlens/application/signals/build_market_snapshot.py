"""
Use case: Build a market snapshot from live exchange data.

Input: SymbolQuery (symbol)
Output: MarketSnapshot with 24h statistics and technical indicators
Side effects: Exchange calls (cached by the market data adapter).
Failure cases: MarketDataUnavailableError when the 24h ticker cannot be
    fetched. Missing candles only drop the indicators.
"""

import logging
from typing import Optional

from marketlens.application.signals.dtos import SymbolQuery
from marketlens.domain.signals.entities import MarketSnapshot
from marketlens.domain.signals.errors import MarketDataUnavailableError
from marketlens.domain.signals.indicators import IndicatorSet, TechnicalIndicators
from marketlens.domain.signals.ports import MarketDataPort

logger = logging.getLogger(__name__)

SNAPSHOT_INTERVAL = "1d"
SNAPSHOT_CANDLES = 100


class BuildMarketSnapshotUseCase:
    """Combines the 24h ticker with indicators computed on daily candles."""

    def __init__(
        self,
        market_data: MarketDataPort,
        indicators: Optional[TechnicalIndicators] = None,
        candle_limit: int = SNAPSHOT_CANDLES,
    ) -> None:
        self._market_data = market_data
        self._indicators = indicators or TechnicalIndicators()
        self._candle_limit = candle_limit

    async def execute(self, query: SymbolQuery) -> MarketSnapshot:
        """Run the snapshot use case.

        Args:
            query: The symbol to snapshot.

        Returns:
            The snapshot. Indicators are None when history is missing.

        Raises:
            MarketDataUnavailableError: If the 24h ticker is unavailable.
        """
        logger.info("Building market snapshot for symbol=%s", query.symbol)
        ticker = await self._market_data.get_24h_stats(query.symbol)

        indicator_set = IndicatorSet()
        try:
            candles = await self._market_data.get_candles(
                query.symbol, SNAPSHOT_INTERVAL, self._candle_limit
            )
            indicator_set = self._indicators.compute([c.close for c in candles])
        except MarketDataUnavailableError as exc:
            logger.warning(
                "Snapshot for %s built without indicators: %s", query.symbol, exc.reason
            )

        return MarketSnapshot(
            symbol=query.symbol,
            current_price=ticker.last_price,
            price_change_24h=ticker.price_change_percent,
            volume_24h=ticker.volume,
            high_24h=ticker.high,
            low_24h=ticker.low,
            rsi=indicator_set.rsi,
            macd=indicator_set.macd,
            sma20=indicator_set.sma20,
            sma50=indicator_set.sma50,
            bollinger=indicator_set.bollinger,
        )
