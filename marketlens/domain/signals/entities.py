"""
Domain entities for the signals bounded context.

Value objects describing market snapshots, normalized signal scores,
analyst opinions and their fused consensus.
They contain no framework imports and no IO operations.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

FALLBACK_REASONING = "Analysis unavailable"
CONSENSUS_SOURCE = "consensus"


class TradingSignal(Enum):
    """Categorical trading recommendation, ordered bearish to bullish."""

    STRONG_SELL = "strong_sell"
    SELL = "sell"
    HOLD = "hold"
    BUY = "buy"
    STRONG_BUY = "strong_buy"

    @property
    def score(self) -> int:
        """Integer score on the -2..2 scale."""
        return _SIGNAL_SCORES[self]


_SIGNAL_SCORES = {
    TradingSignal.STRONG_SELL: -2,
    TradingSignal.SELL: -1,
    TradingSignal.HOLD: 0,
    TradingSignal.BUY: 1,
    TradingSignal.STRONG_BUY: 2,
}


class RiskLevel(Enum):
    """Risk classification, ordered by severity."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def severity(self) -> int:
        return _RISK_SEVERITY[self]


_RISK_SEVERITY = {
    RiskLevel.LOW: 1,
    RiskLevel.MEDIUM: 2,
    RiskLevel.HIGH: 3,
}


class Timeframe(Enum):
    """Investment horizon of an opinion."""

    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class TrendDirection(Enum):
    """Trend classification for a single candle interval."""

    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class MacdValue:
    """MACD line, signal line and histogram."""

    value: float
    signal: float
    histogram: float


@dataclass(frozen=True)
class BollingerBands:
    """Bollinger band envelope around a moving average."""

    upper: float
    middle: float
    lower: float


@dataclass(frozen=True)
class MarketSnapshot:
    """Point-in-time market data for one symbol.

    Built per request, either from the API payload or from the
    exchange client. Technical indicators are optional.
    """

    symbol: str
    current_price: float
    price_change_24h: float
    volume_24h: float
    high_24h: float
    low_24h: float
    rsi: Optional[float] = None
    macd: Optional[MacdValue] = None
    sma20: Optional[float] = None
    sma50: Optional[float] = None
    bollinger: Optional[BollingerBands] = None


@dataclass(frozen=True)
class Candle:
    """A single OHLCV candle from the exchange."""

    open_time: int
    open: float
    high: float
    low: float
    close: float
    volume: float
    close_time: int


@dataclass(frozen=True)
class Ticker24h:
    """Rolling 24h statistics for a symbol."""

    symbol: str
    last_price: float
    price_change_percent: float
    volume: float
    high: float
    low: float


@dataclass(frozen=True)
class SignalScore:
    """A normalized bullish/bearish lean produced by one signal source.

    Attributes:
        source: Provenance tag (technical, on_chain, sentiment).
        score: Lean in [-1.0, 1.0]; 0 is neutral.
        data_points: How many underlying data points contributed.
        summary: Human-readable one-liner.
        details: Source-specific breakdown, JSON-serializable.
    """

    source: str
    score: float
    data_points: int
    summary: str = ""
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def neutral(cls, source: str, summary: str) -> "SignalScore":
        """The documented neutral default returned when a source fails."""
        return cls(source=source, score=0.0, data_points=0, summary=summary)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "score": self.score,
            "data_points": self.data_points,
            "summary": self.summary,
            "details": dict(self.details),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SignalScore":
        return cls(
            source=data["source"],
            score=float(data["score"]),
            data_points=int(data["data_points"]),
            summary=data.get("summary", ""),
            details=dict(data.get("details") or {}),
        )


@dataclass(frozen=True)
class TimeframeTrend:
    """Trend vote for one candle interval."""

    interval: str
    trend: TrendDirection
    vote: TradingSignal
    reason: str
    price_change: float = 0.0
    candle_count: int = 0


@dataclass(frozen=True)
class MultiTimeframeAnalysis:
    """Per-interval trend votes and the aggregated signal."""

    symbol: str
    timeframes: list[TimeframeTrend]
    overall_signal: TradingSignal
    overall_summary: str

    @property
    def intervals_with_data(self) -> int:
        return sum(1 for t in self.timeframes if t.candle_count > 0)


@dataclass(frozen=True)
class OnChainMetrics:
    """Address, transaction and whale activity metrics for a coin.

    Fields the provider did not report hold baseline values.
    ``whale_score_reported`` is False when the whale accumulation score,
    the only field behind the on_chain signal, is such a baseline.
    """

    symbol: str
    active_addresses_24h: int
    new_addresses_24h: int
    transaction_count_24h: int
    large_transaction_count_24h: int
    circulating_supply: float
    supply_on_exchanges_pct: float
    supply_in_smart_contracts_pct: float
    whale_accumulation_score: float
    top100_holders_pct: float
    summary: str
    fields_reported: int
    last_updated: datetime
    whale_score_reported: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "active_addresses_24h": self.active_addresses_24h,
            "new_addresses_24h": self.new_addresses_24h,
            "transaction_count_24h": self.transaction_count_24h,
            "large_transaction_count_24h": self.large_transaction_count_24h,
            "circulating_supply": self.circulating_supply,
            "supply_on_exchanges_pct": self.supply_on_exchanges_pct,
            "supply_in_smart_contracts_pct": self.supply_in_smart_contracts_pct,
            "whale_accumulation_score": self.whale_accumulation_score,
            "top100_holders_pct": self.top100_holders_pct,
            "summary": self.summary,
            "fields_reported": self.fields_reported,
            "last_updated": self.last_updated.isoformat(),
            "whale_score_reported": self.whale_score_reported,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OnChainMetrics":
        return cls(
            symbol=data["symbol"],
            active_addresses_24h=int(data["active_addresses_24h"]),
            new_addresses_24h=int(data["new_addresses_24h"]),
            transaction_count_24h=int(data["transaction_count_24h"]),
            large_transaction_count_24h=int(data["large_transaction_count_24h"]),
            circulating_supply=float(data["circulating_supply"]),
            supply_on_exchanges_pct=float(data["supply_on_exchanges_pct"]),
            supply_in_smart_contracts_pct=float(data["supply_in_smart_contracts_pct"]),
            whale_accumulation_score=float(data["whale_accumulation_score"]),
            top100_holders_pct=float(data["top100_holders_pct"]),
            summary=data["summary"],
            fields_reported=int(data["fields_reported"]),
            last_updated=datetime.fromisoformat(data["last_updated"]),
            whale_score_reported=bool(data.get("whale_score_reported", False)),
        )


@dataclass(frozen=True)
class SentimentBreakdown:
    """Aggregated social sentiment for a coin.

    Only providers that answered appear in ``sources``.
    """

    symbol: str
    score: float
    source_count: int
    sources: dict[str, float]
    summary: str
    last_updated: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "score": self.score,
            "source_count": self.source_count,
            "sources": dict(self.sources),
            "summary": self.summary,
            "last_updated": self.last_updated.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SentimentBreakdown":
        return cls(
            symbol=data["symbol"],
            score=float(data["score"]),
            source_count=int(data["source_count"]),
            sources={k: float(v) for k, v in (data.get("sources") or {}).items()},
            summary=data["summary"],
            last_updated=datetime.fromisoformat(data["last_updated"]),
        )


@dataclass(frozen=True)
class DirectionalOpinion:
    """A structured opinion produced by one analyst persona.

    Never mutated once created. The fallback opinion has exactly
    the same shape as a real one.
    """

    source: str
    signal: TradingSignal
    confidence: float
    target_price: float
    reasoning: str
    risk_level: RiskLevel
    timeframe: Timeframe

    @classmethod
    def fallback(cls, source: str, current_price: float) -> "DirectionalOpinion":
        """Neutral opinion substituted when an analyst fails."""
        return cls(
            source=source,
            signal=TradingSignal.HOLD,
            confidence=50,
            target_price=current_price,
            reasoning=FALLBACK_REASONING,
            risk_level=RiskLevel.MEDIUM,
            timeframe=Timeframe.MEDIUM,
        )

    @property
    def is_fallback(self) -> bool:
        return self.reasoning == FALLBACK_REASONING

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "signal": self.signal.value,
            "confidence": self.confidence,
            "target_price": self.target_price,
            "reasoning": self.reasoning,
            "risk_level": self.risk_level.value,
            "timeframe": self.timeframe.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DirectionalOpinion":
        return cls(
            source=data["source"],
            signal=TradingSignal(data["signal"]),
            confidence=data["confidence"],
            target_price=float(data["target_price"]),
            reasoning=data["reasoning"],
            risk_level=RiskLevel(data["risk_level"]),
            timeframe=Timeframe(data["timeframe"]),
        )


@dataclass(frozen=True)
class WeightedOpinion:
    """An opinion paired with its relative trust weight."""

    weight: float
    opinion: DirectionalOpinion


@dataclass(frozen=True)
class ConsensusResult:
    """The fused output of several analyst opinions.

    This is the unit placed in the cache and returned to callers.
    """

    consensus: DirectionalOpinion
    individual: dict[str, DirectionalOpinion]
    agreement: int
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def all_fallback(self) -> bool:
        """True when no analyst produced a real opinion."""
        return all(opinion.is_fallback for opinion in self.individual.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "consensus": self.consensus.to_dict(),
            "individual": {
                name: opinion.to_dict() for name, opinion in self.individual.items()
            },
            "agreement": self.agreement,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConsensusResult":
        return cls(
            consensus=DirectionalOpinion.from_dict(data["consensus"]),
            individual={
                name: DirectionalOpinion.from_dict(raw)
                for name, raw in data["individual"].items()
            },
            agreement=int(data["agreement"]),
            created_at=datetime.fromisoformat(data["created_at"]),
        )
