"""
Shared fixtures for the MarketLens test suite.

All tests run without network access: HTTP adapters use
httpx.MockTransport and analysts use in-memory fakes.
"""

from typing import Sequence

import pytest

from marketlens.domain.signals.entities import (
    DirectionalOpinion,
    MarketSnapshot,
    RiskLevel,
    SignalScore,
    Timeframe,
    TradingSignal,
)
from marketlens.domain.signals.ports import AnalystPort
from marketlens.shared.security.rate_limiting import limiter


def make_snapshot(symbol: str = "BTCUSDT", price: float = 100.0) -> MarketSnapshot:
    return MarketSnapshot(
        symbol=symbol,
        current_price=price,
        price_change_24h=2.5,
        volume_24h=1_000_000.0,
        high_24h=price * 1.03,
        low_24h=price * 0.97,
    )


def make_opinion(
    source: str = "technical",
    signal: TradingSignal = TradingSignal.BUY,
    confidence: float = 80,
    target_price: float = 105.0,
    risk_level: RiskLevel = RiskLevel.MEDIUM,
    timeframe: Timeframe = Timeframe.SHORT,
    reasoning: str = "Momentum is positive.",
) -> DirectionalOpinion:
    return DirectionalOpinion(
        source=source,
        signal=signal,
        confidence=confidence,
        target_price=target_price,
        reasoning=reasoning,
        risk_level=risk_level,
        timeframe=timeframe,
    )


class FakeAnalyst(AnalystPort):
    """Analyst returning a fixed opinion and recording its calls."""

    def __init__(self, opinion: DirectionalOpinion) -> None:
        self.name = opinion.source
        self._opinion = opinion
        self.calls: list[tuple[MarketSnapshot, tuple[SignalScore, ...]]] = []

    async def analyze(
        self, snapshot: MarketSnapshot, signals: Sequence[SignalScore] = ()
    ) -> DirectionalOpinion:
        self.calls.append((snapshot, tuple(signals)))
        return self._opinion


@pytest.fixture
def snapshot() -> MarketSnapshot:
    return make_snapshot()


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Rate limit counters are process-wide; isolate each test."""
    limiter.reset()
    yield
    limiter.reset()
