"""
Tests for the market data and signal source adapters.

HTTP adapters run against httpx.MockTransport; the signal adapters run
against in-memory fakes of their ports. No network access.
"""

import asyncio
import json
from typing import Optional
from unittest.mock import AsyncMock

import httpx
import pytest

from marketlens.application.signals.cache_aside import CacheAside
from marketlens.domain.signals.entities import Candle, Ticker24h, TradingSignal
from marketlens.domain.signals.errors import MarketDataUnavailableError
from marketlens.domain.signals.ports import MarketDataPort, SentimentProviderPort
from marketlens.infrastructure.cache.memory_store import InMemoryCacheStore
from marketlens.infrastructure.signals.binance_market_data import (
    BinanceMarketDataAdapter,
)
from marketlens.infrastructure.signals.coins import base_asset, coin_name, coingecko_id
from marketlens.infrastructure.signals.onchain_provider import CoinGeckoOnChainProvider
from marketlens.infrastructure.signals.onchain_signal_adapter import (
    UNAVAILABLE_SUMMARY as ONCHAIN_UNAVAILABLE,
)
from marketlens.infrastructure.signals.onchain_signal_adapter import (
    OnChainSignalAdapter,
    build_metrics,
)
from marketlens.infrastructure.signals.sentiment_providers import (
    FearGreedSentimentProvider,
    JsonSentimentProvider,
)
from marketlens.infrastructure.signals.sentiment_signal_adapter import (
    SentimentSignalAdapter,
    combine_scores,
)
from marketlens.infrastructure.signals.technical_signal_adapter import (
    TechnicalSignalAdapter,
)

BINANCE = "https://api.binance.com"
COINGECKO = "https://api.coingecko.com/api/v3"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _kline(i: int, close: float) -> list:
    return [i * 1000, str(close), str(close), str(close), str(close), "10.0", i * 1000 + 999]


# ══════════════════════════════════════════════════════════════════════
# Binance market data
# ══════════════════════════════════════════════════════════════════════


class TestBinanceMarketData:
    """Tests for BinanceMarketDataAdapter."""

    @pytest.mark.asyncio
    async def test_current_price(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v3/ticker/price"
            assert request.url.params["symbol"] == "BTCUSDT"
            return httpx.Response(200, json={"symbol": "BTCUSDT", "price": "64000.50"})

        async with _client(handler) as client:
            adapter = BinanceMarketDataAdapter(client, BINANCE)
            assert await adapter.get_current_price("BTCUSDT") == 64000.5

    @pytest.mark.asyncio
    async def test_24h_stats(self) -> None:
        payload = {
            "symbol": "ETHUSDT",
            "lastPrice": "3100.00",
            "priceChangePercent": "-1.25",
            "quoteVolume": "987654.3",
            "highPrice": "3200.0",
            "lowPrice": "3000.0",
        }

        async with _client(lambda r: httpx.Response(200, json=payload)) as client:
            ticker = await BinanceMarketDataAdapter(client, BINANCE).get_24h_stats("ETHUSDT")

        assert ticker == Ticker24h(
            symbol="ETHUSDT",
            last_price=3100.0,
            price_change_percent=-1.25,
            volume=987654.3,
            high=3200.0,
            low=3000.0,
        )

    @pytest.mark.asyncio
    async def test_candles_parsed_oldest_first(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["interval"] == "4h"
            assert request.url.params["limit"] == "2"
            return httpx.Response(200, json=[_kline(0, 10.0), _kline(1, 11.5)])

        async with _client(handler) as client:
            candles = await BinanceMarketDataAdapter(client, BINANCE).get_candles(
                "BTCUSDT", "4h", 2
            )

        assert [c.close for c in candles] == [10.0, 11.5]
        assert candles[1].open_time == 1000

    @pytest.mark.asyncio
    async def test_http_error_raises_market_data_unavailable(self) -> None:
        async with _client(lambda r: httpx.Response(400, json={"code": -1121})) as client:
            adapter = BinanceMarketDataAdapter(client, BINANCE)
            with pytest.raises(MarketDataUnavailableError) as exc_info:
                await adapter.get_current_price("NOPE")

        assert exc_info.value.reason == "HTTP 400"

    @pytest.mark.asyncio
    async def test_malformed_payload_raises(self) -> None:
        async with _client(lambda r: httpx.Response(200, json={"unexpected": 1})) as client:
            with pytest.raises(MarketDataUnavailableError):
                await BinanceMarketDataAdapter(client, BINANCE).get_24h_stats("BTCUSDT")

    @pytest.mark.asyncio
    async def test_unsupported_interval(self) -> None:
        async with _client(lambda r: httpx.Response(200, json=[])) as client:
            with pytest.raises(ValueError):
                await BinanceMarketDataAdapter(client, BINANCE).get_candles("BTCUSDT", "3d")

    @pytest.mark.asyncio
    async def test_responses_are_cached(self) -> None:
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"symbol": "BTCUSDT", "price": "1.5"})

        store = InMemoryCacheStore()
        async with _client(handler) as client:
            adapter = BinanceMarketDataAdapter(client, BINANCE, cache=CacheAside(store))
            await adapter.get_current_price("BTCUSDT")
            await adapter.get_current_price("BTCUSDT")

        assert len(requests) == 1
        assert await store.get("binance:price:BTCUSDT") == "1.5"


# ══════════════════════════════════════════════════════════════════════
# Technical multi-timeframe adapter
# ══════════════════════════════════════════════════════════════════════


class FakeMarketData(MarketDataPort):
    """Serves fixed closes per interval; listed intervals fail."""

    def __init__(self, closes: dict[str, list[float]], failing: tuple[str, ...] = ()):
        self._closes = closes
        self._failing = failing
        self.requested: list[tuple[str, int]] = []

    async def get_current_price(self, symbol: str) -> float:
        raise NotImplementedError

    async def get_24h_stats(self, symbol: str) -> Ticker24h:
        raise NotImplementedError

    async def get_candles(self, symbol: str, interval: str, limit: int = 100) -> list[Candle]:
        self.requested.append((interval, limit))
        if interval in self._failing:
            raise MarketDataUnavailableError(symbol, "HTTP 503")
        return [
            Candle(i, c, c, c, c, 1.0, i + 1)
            for i, c in enumerate(self._closes.get(interval, []))
        ]


RISING = [100.0] * 10 + [110.0] * 10


class TestTechnicalSignalAdapter:
    """Tests for TechnicalSignalAdapter."""

    @pytest.mark.asyncio
    async def test_all_intervals_bullish_is_strong_buy(self) -> None:
        market = FakeMarketData({i: RISING for i in ("1h", "4h", "1d", "1w")})
        signal = await TechnicalSignalAdapter(market).fetch_signal("BTCUSDT")

        assert signal.source == "technical"
        assert signal.score == 1.0
        assert signal.data_points == 4
        assert signal.details["signal"] == "strong_buy"
        assert sorted(market.requested) == [("1d", 20), ("1h", 20), ("1w", 20), ("4h", 20)]

    @pytest.mark.asyncio
    async def test_failed_interval_counts_as_no_data(self) -> None:
        market = FakeMarketData(
            {i: RISING for i in ("1h", "4h", "1d", "1w")}, failing=("1w",)
        )
        adapter = TechnicalSignalAdapter(market)

        analysis = await adapter.analyze("BTCUSDT")
        signal = await adapter.fetch_signal("BTCUSDT")

        assert analysis.overall_signal is TradingSignal.BUY
        assert analysis.timeframes[-1].reason == "No candle data available."
        assert signal.score == 0.5
        assert signal.data_points == 3

    @pytest.mark.asyncio
    async def test_exchange_down_is_neutral(self) -> None:
        market = FakeMarketData({}, failing=("1h", "4h", "1d", "1w"))
        signal = await TechnicalSignalAdapter(market).fetch_signal("BTCUSDT")

        assert signal.score == 0.0
        assert signal.data_points == 0


# ══════════════════════════════════════════════════════════════════════
# On-chain
# ══════════════════════════════════════════════════════════════════════


class TestCoins:
    """Tests for the symbol to coin mapping."""

    def test_base_asset_strips_quote(self) -> None:
        assert base_asset("BTCUSDT") == "BTC"
        assert base_asset("ETHBUSD") == "ETH"
        assert base_asset("USDC") == "USDC"

    def test_known_and_unknown_coins(self) -> None:
        assert coingecko_id("MATICUSDT") == "matic-network"
        assert coingecko_id("PEPEUSDT") == "pepe"
        assert coin_name("BNBUSDT") == "Binance Coin"
        assert coin_name("PEPEUSDT") == "PEPE"


class TestOnChain:
    """Tests for the CoinGecko provider and the on-chain signal adapter."""

    @pytest.mark.asyncio
    async def test_provider_reports_only_known_fields(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v3/coins/bitcoin"
            return httpx.Response(
                200,
                json={
                    "market_data": {"circulating_supply": 19_600_000.0},
                    "developer_data": {"forks": 36000},
                },
            )

        async with _client(handler) as client:
            metrics = await CoinGeckoOnChainProvider(client, COINGECKO).fetch_metrics("BTCUSDT")

        assert metrics == {"circulating_supply": 19_600_000.0}

    @pytest.mark.asyncio
    async def test_missing_fields_use_baselines(self) -> None:
        provider = AsyncMock()
        provider.fetch_metrics = AsyncMock(return_value={"circulating_supply": 120_000_000.0})
        metrics = await OnChainSignalAdapter(provider).get_metrics("ETHUSDT")

        assert metrics.circulating_supply == 120_000_000.0
        assert metrics.active_addresses_24h == 500_000
        assert metrics.top100_holders_pct == 45.0
        assert metrics.whale_accumulation_score == 0.3
        assert metrics.summary == "Moderate whale accumulation detected."
        assert metrics.fields_reported == 1
        assert metrics.whale_score_reported is False

    @pytest.mark.asyncio
    async def test_baseline_whale_score_counts_no_data_points(self) -> None:
        provider = AsyncMock()
        provider.fetch_metrics = AsyncMock(
            return_value={"circulating_supply": 19_600_000.0, "top100_holders_pct": 52.0}
        )
        signal = await OnChainSignalAdapter(provider).fetch_signal("BTCUSDT")

        assert signal.score == 0.3
        assert signal.data_points == 0
        assert signal.details["whale_score_source"] == "baseline"
        assert signal.details["top100_holders_pct"] == 52.0
        assert signal.summary == (
            "Moderate whale accumulation detected. "
            "Whale score is a baseline estimate, not a measurement."
        )

    @pytest.mark.asyncio
    async def test_reported_whale_score_is_one_data_point(self) -> None:
        provider = AsyncMock()
        provider.fetch_metrics = AsyncMock(
            return_value={"whale_accumulation_score": 0.6, "circulating_supply": 1.0}
        )
        signal = await OnChainSignalAdapter(provider).fetch_signal("BTCUSDT")

        assert signal.score == 0.6
        assert signal.data_points == 1
        assert signal.details["whale_score_source"] == "reported"
        assert signal.summary == "Whales are accumulating - bullish on-chain signal."

    @pytest.mark.parametrize(
        "whale, expected_score, summary_start",
        [
            (1.7, 1.0, "Whales are accumulating"),
            (0.2, 0.2, "Moderate whale accumulation"),
            (-0.1, -0.1, "Neutral whale activity"),
            (-0.456, -0.46, "Whales are distributing"),
        ],
    )
    def test_whale_score_clamped_and_summarized(
        self, whale: float, expected_score: float, summary_start: str
    ) -> None:
        metrics = build_metrics("BTCUSDT", {"whale_accumulation_score": whale})

        assert metrics.whale_accumulation_score == expected_score
        assert metrics.summary.startswith(summary_start)

    @pytest.mark.asyncio
    async def test_provider_failure_returns_neutral_default(self) -> None:
        async with _client(lambda r: httpx.Response(429)) as client:
            adapter = OnChainSignalAdapter(CoinGeckoOnChainProvider(client, COINGECKO))
            signal = await adapter.fetch_signal("BTCUSDT")
            metrics = await adapter.get_metrics("BTCUSDT")

        assert signal.score == 0.0
        assert signal.data_points == 0
        assert signal.summary == ONCHAIN_UNAVAILABLE
        assert signal.details["whale_score_source"] == "baseline"
        assert metrics.whale_accumulation_score == 0.0
        assert metrics.active_addresses_24h == 500_000

    @pytest.mark.asyncio
    async def test_results_cached_but_failures_are_not(self) -> None:
        provider = AsyncMock()
        provider.fetch_metrics = AsyncMock(
            side_effect=[httpx.ConnectError("down"), {"top100_holders_pct": 51.0}]
        )
        adapter = OnChainSignalAdapter(provider, cache=CacheAside(InMemoryCacheStore()))

        first = await adapter.get_metrics("SOLUSDT")
        second = await adapter.get_metrics("SOLUSDT")
        third = await adapter.get_metrics("SOLUSDT")

        assert first.fields_reported == 0
        assert second.top100_holders_pct == 51.0
        assert second.whale_score_reported is False
        assert third == second
        assert provider.fetch_metrics.await_count == 2


# ══════════════════════════════════════════════════════════════════════
# Sentiment
# ══════════════════════════════════════════════════════════════════════


class StaticProvider(SentimentProviderPort):
    """Provider returning a fixed score, raising, or stalling."""

    def __init__(
        self,
        name: str,
        score: Optional[float] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ) -> None:
        self.name = name
        self._score = score
        self._error = error
        self._delay = delay
        self.calls = 0

    async def fetch_score(self, symbol: str) -> float:
        self.calls += 1
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return self._score


class TestSentiment:
    """Tests for the sentiment providers and the sentiment signal adapter."""

    @pytest.mark.asyncio
    async def test_mean_of_successful_providers(self) -> None:
        adapter = SentimentSignalAdapter(
            [StaticProvider("reddit", 60), StaticProvider("twitter", 20)]
        )
        breakdown = await adapter.get_breakdown("BTCUSDT")

        assert breakdown.score == 0.4
        assert breakdown.source_count == 2
        assert breakdown.sources == {"reddit": 60, "twitter": 20}
        assert breakdown.summary == "Moderately positive sentiment, with growing interest."

    @pytest.mark.asyncio
    async def test_failed_providers_excluded_and_zero_kept(self) -> None:
        adapter = SentimentSignalAdapter(
            [
                StaticProvider("reddit", error=httpx.ReadTimeout("slow")),
                StaticProvider("twitter", 0.0),
            ]
        )
        signal = await adapter.fetch_signal("BTCUSDT")

        assert signal.score == 0.0
        assert signal.data_points == 1
        assert signal.details["sources"] == {"twitter": 0.0}
        assert signal.summary == "Neutral market sentiment."

    @pytest.mark.asyncio
    async def test_slow_provider_times_out(self) -> None:
        adapter = SentimentSignalAdapter(
            [StaticProvider("slow", 90, delay=1.0), StaticProvider("fast", -80)],
            provider_timeout=0.05,
        )
        breakdown = await adapter.get_breakdown("BTCUSDT")

        assert breakdown.sources == {"fast": -80}
        assert breakdown.score == -0.8
        assert breakdown.summary.startswith("Overwhelmingly bearish")

    @pytest.mark.asyncio
    async def test_all_providers_failed(self) -> None:
        adapter = SentimentSignalAdapter([StaticProvider("x", error=ValueError("bad"))])
        breakdown = await adapter.get_breakdown("BTCUSDT")

        assert breakdown.score == 0.0
        assert breakdown.source_count == 0
        assert breakdown.summary == "Sentiment data unavailable."

    @pytest.mark.asyncio
    async def test_breakdown_cached(self) -> None:
        provider = StaticProvider("reddit", 30)
        adapter = SentimentSignalAdapter([provider], cache=CacheAside(InMemoryCacheStore()))

        first = await adapter.get_breakdown("ADAUSDT")
        second = await adapter.get_breakdown("ADAUSDT")

        assert provider.calls == 1
        assert second == first

    def test_scores_clamped_to_unit_range(self) -> None:
        assert combine_scores("BTCUSDT", {"a": 250.0}).score == 1.0
        assert combine_scores("BTCUSDT", {"a": -100.0, "b": -100.0}).score == -1.0

    @pytest.mark.asyncio
    async def test_fear_greed_recentred(self) -> None:
        payload = {"name": "Fear and Greed Index", "data": [{"value": "75"}]}
        async with _client(lambda r: httpx.Response(200, json=payload)) as client:
            score = await FearGreedSentimentProvider(client).fetch_score("BTCUSDT")

        assert score == 50.0

    @pytest.mark.asyncio
    async def test_json_provider_follows_score_path(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1/coins/Ethereum"
            assert request.headers["Authorization"] == "Bearer secret"
            return httpx.Response(200, content=json.dumps({"data": {"sentiment": -35}}))

        async with _client(handler) as client:
            provider = JsonSentimentProvider(
                name="lunar",
                client=client,
                url_template="https://social.example/v1/coins/{coin}",
                score_path="data.sentiment",
                headers={"Authorization": "Bearer secret"},
            )
            assert await provider.fetch_score("ETHUSDT") == -35.0

    @pytest.mark.asyncio
    async def test_json_provider_missing_path_raises(self) -> None:
        async with _client(lambda r: httpx.Response(200, json={"data": {}})) as client:
            provider = JsonSentimentProvider(
                "lunar", client, "https://social.example/{coin}", "data.sentiment"
            )
            with pytest.raises(ValueError):
                await provider.fetch_score("BTCUSDT")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["NaN", "inf", "-Infinity"])
    async def test_json_provider_non_finite_score_raises(self, raw: str) -> None:
        payload = {"data": {"sentiment": raw}}
        async with _client(lambda r: httpx.Response(200, json=payload)) as client:
            provider = JsonSentimentProvider(
                "lunar", client, "https://social.example/{coin}", "data.sentiment"
            )
            with pytest.raises(ValueError):
                await provider.fetch_score("BTCUSDT")

    @pytest.mark.asyncio
    async def test_fear_greed_non_finite_value_raises(self) -> None:
        payload = {"data": [{"value": "nan"}]}
        async with _client(lambda r: httpx.Response(200, json=payload)) as client:
            with pytest.raises(ValueError):
                await FearGreedSentimentProvider(client).fetch_score("BTCUSDT")

    @pytest.mark.asyncio
    async def test_non_finite_provider_is_excluded(self) -> None:
        payload = {"data": {"sentiment": "NaN"}}
        async with _client(lambda r: httpx.Response(200, json=payload)) as client:
            broken = JsonSentimentProvider(
                "lunar", client, "https://social.example/{coin}", "data.sentiment"
            )
            alone = await SentimentSignalAdapter([broken]).fetch_signal("BTCUSDT")
            mixed = await SentimentSignalAdapter(
                [broken, StaticProvider("reddit", -40)]
            ).get_breakdown("BTCUSDT")

        assert alone.score == 0.0
        assert alone.data_points == 0
        assert alone.summary == "Sentiment data unavailable."
        assert mixed.sources == {"reddit": -40}
        assert mixed.score == -0.4
