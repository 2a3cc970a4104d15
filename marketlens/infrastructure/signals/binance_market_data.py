"""
Adapter: Binance public market data.

Implements MarketDataPort over the Binance REST API using httpx.
Responses are cached through the cache-aside layer:
    - price:  30 seconds
    - ticker: 30 seconds
    - klines: 5 minutes

Any transport error, non-2xx status or malformed payload raises
MarketDataUnavailableError; callers decide how to degrade.
"""

import asyncio
import logging
from typing import Any, Optional

import httpx

from marketlens.application.signals import cache_keys
from marketlens.application.signals.cache_aside import CacheAside
from marketlens.application.signals.cache_keys import CacheTTL
from marketlens.domain.signals.entities import Candle, Ticker24h
from marketlens.domain.signals.errors import MarketDataUnavailableError
from marketlens.domain.signals.ports import MarketDataPort

logger = logging.getLogger(__name__)

VALID_INTERVALS = ("1m", "5m", "15m", "1h", "4h", "1d", "1w")


class BinanceMarketDataAdapter(MarketDataPort):
    """Concrete adapter for Binance spot market data."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = "https://api.binance.com",
        cache: Optional[CacheAside] = None,
        timeout: float = 10.0,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._cache = cache
        self._timeout = timeout

    async def get_current_price(self, symbol: str) -> float:
        async def fetch() -> float:
            data = await self._get_json("/api/v3/ticker/price", {"symbol": symbol}, symbol)
            try:
                return float(data["price"])
            except (KeyError, TypeError, ValueError) as exc:
                raise MarketDataUnavailableError(symbol, "malformed price payload") from exc

        return await self._cached(cache_keys.binance_price(symbol), fetch, CacheTTL.VERY_SHORT)

    async def get_24h_stats(self, symbol: str) -> Ticker24h:
        async def fetch() -> dict[str, Any]:
            data = await self._get_json("/api/v3/ticker/24hr", {"symbol": symbol}, symbol)
            ticker = _parse_ticker(symbol, data)
            return {
                "symbol": ticker.symbol,
                "last_price": ticker.last_price,
                "price_change_percent": ticker.price_change_percent,
                "volume": ticker.volume,
                "high": ticker.high,
                "low": ticker.low,
            }

        raw = await self._cached(cache_keys.binance_ticker(symbol), fetch, CacheTTL.VERY_SHORT)
        return Ticker24h(**raw)

    async def get_candles(
        self, symbol: str, interval: str, limit: int = 100
    ) -> list[Candle]:
        if interval not in VALID_INTERVALS:
            raise ValueError(f"Unsupported interval: {interval}")

        async def fetch() -> list[list[Any]]:
            data = await self._get_json(
                "/api/v3/klines",
                {"symbol": symbol, "interval": interval, "limit": str(limit)},
                symbol,
            )
            if not isinstance(data, list):
                raise MarketDataUnavailableError(symbol, "malformed klines payload")
            return data

        rows = await self._cached(
            cache_keys.binance_klines(symbol, interval, limit), fetch, CacheTTL.SHORT
        )
        try:
            return [_parse_kline(row) for row in rows]
        except (IndexError, TypeError, ValueError) as exc:
            raise MarketDataUnavailableError(symbol, "malformed kline row") from exc

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _cached(self, key: str, fetch, ttl: int):
        if self._cache is None:
            return await fetch()
        return await self._cache.get_or_compute(key, fetch, ttl)

    async def _get_json(self, path: str, params: dict[str, str], symbol: str) -> Any:
        url = f"{self._base_url}{path}"
        try:
            response = await asyncio.wait_for(
                self._client.get(url, params=params), timeout=self._timeout
            )
            response.raise_for_status()
            return response.json()
        except asyncio.TimeoutError as exc:
            logger.warning("Binance request %s timed out for %s", path, symbol)
            raise MarketDataUnavailableError(symbol, "request timed out") from exc
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Binance request %s failed for %s: HTTP %d",
                path,
                symbol,
                exc.response.status_code,
            )
            raise MarketDataUnavailableError(
                symbol, f"HTTP {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Binance request %s failed for %s: %s", path, symbol, exc)
            raise MarketDataUnavailableError(symbol, type(exc).__name__) from exc


def _parse_ticker(symbol: str, data: Any) -> Ticker24h:
    """Map a /ticker/24hr payload to a Ticker24h entity."""
    try:
        return Ticker24h(
            symbol=data.get("symbol", symbol),
            last_price=float(data["lastPrice"]),
            price_change_percent=float(data["priceChangePercent"]),
            volume=float(data.get("quoteVolume", data.get("volume", 0))),
            high=float(data["highPrice"]),
            low=float(data["lowPrice"]),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise MarketDataUnavailableError(symbol, "malformed ticker payload") from exc


def _parse_kline(row: list[Any]) -> Candle:
    """Map a raw kline array to a Candle entity."""
    return Candle(
        open_time=int(row[0]),
        open=float(row[1]),
        high=float(row[2]),
        low=float(row[3]),
        close=float(row[4]),
        volume=float(row[5]),
        close_time=int(row[6]),
    )
