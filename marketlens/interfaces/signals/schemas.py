"""
Pydantic schemas for signals API request/response validation.

These schemas enforce input validation and define the API contract.
Wire fields are camelCase; Python attributes stay snake_case.
No business logic belongs here.
"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from marketlens.domain.signals.entities import (
    ConsensusResult,
    DirectionalOpinion,
    MultiTimeframeAnalysis,
    OnChainMetrics,
    SentimentBreakdown,
    SignalScore,
)

SYMBOL_DESCRIPTION = "Exchange trading pair, e.g. BTCUSDT"
SYMBOL_PATTERN = r"^[A-Z0-9]+$"
SYMBOL_MIN_LEN = 2
SYMBOL_MAX_LEN = 20

SignalValue = Literal["strong_buy", "buy", "hold", "sell", "strong_sell"]
RiskValue = Literal["low", "medium", "high"]
TimeframeValue = Literal["short", "medium", "long"]


def to_camel(name: str) -> str:
    """snake_case -> camelCase, keeping digits attached (high_24h -> high24h)."""
    head, *tail = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in tail)


class CamelModel(BaseModel):
    """Base schema serialized with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Response schema for health check endpoint."""

    status: str
    version: str
    cache: str
    cache_stats: Optional[dict[str, int]] = None


# ------------------------------------------------------------------
# Requests
# ------------------------------------------------------------------


class MacdSchema(CamelModel):
    value: float
    signal: float
    histogram: float


class BollingerSchema(CamelModel):
    upper: float
    middle: float
    lower: float


class MarketSnapshotRequest(CamelModel):
    """Request schema for the consensus endpoint.

    Attributes:
        symbol: Trading pair (2-20 uppercase chars).
        current_price: Last traded price, strictly positive.
        price_change_24h: 24h change in percent.
        volume_24h: 24h traded volume.
        high_24h: 24h high.
        low_24h: 24h low.
        rsi, macd, sma20, sma50, bollinger: Optional indicators.
    """

    symbol: str = Field(
        ...,
        min_length=SYMBOL_MIN_LEN,
        max_length=SYMBOL_MAX_LEN,
        pattern=SYMBOL_PATTERN,
        description=SYMBOL_DESCRIPTION,
    )
    current_price: float = Field(..., gt=0, description="Last traded price")
    price_change_24h: float = Field(..., description="24h change in percent")
    volume_24h: float = Field(..., ge=0)
    high_24h: float = Field(..., ge=0)
    low_24h: float = Field(..., ge=0)
    rsi: Optional[float] = Field(default=None, ge=0, le=100)
    macd: Optional[MacdSchema] = None
    sma20: Optional[float] = None
    sma50: Optional[float] = None
    bollinger: Optional[BollingerSchema] = None


# ------------------------------------------------------------------
# Responses
# ------------------------------------------------------------------


class OpinionSchema(CamelModel):
    """A single analyst (or consensus) opinion."""

    source: str
    signal: SignalValue
    confidence: float
    target_price: float
    reasoning: str
    risk_level: RiskValue
    timeframe: TimeframeValue

    @classmethod
    def from_domain(cls, opinion: DirectionalOpinion) -> "OpinionSchema":
        return cls(
            source=opinion.source,
            signal=opinion.signal.value,
            confidence=opinion.confidence,
            target_price=opinion.target_price,
            reasoning=opinion.reasoning,
            risk_level=opinion.risk_level.value,
            timeframe=opinion.timeframe.value,
        )


class ConsensusResponse(CamelModel):
    """Response schema for the consensus endpoints."""

    consensus: OpinionSchema
    individual: dict[str, OpinionSchema]
    agreement: int = Field(..., ge=0, le=100)
    timestamp: datetime

    @classmethod
    def from_domain(cls, result: ConsensusResult) -> "ConsensusResponse":
        return cls(
            consensus=OpinionSchema.from_domain(result.consensus),
            individual={
                name: OpinionSchema.from_domain(opinion)
                for name, opinion in result.individual.items()
            },
            agreement=result.agreement,
            timestamp=result.created_at,
        )


class SignalScoreSchema(CamelModel):
    source: str
    score: float = Field(..., ge=-1, le=1)
    data_points: int
    summary: str
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, signal: SignalScore) -> "SignalScoreSchema":
        return cls(
            source=signal.source,
            score=signal.score,
            data_points=signal.data_points,
            summary=signal.summary,
            details=dict(signal.details),
        )


class MarketSignalsResponse(CamelModel):
    """Response schema for the combined signals endpoint."""

    symbol: str
    signals: list[SignalScoreSchema]
    average_score: float


class TimeframeTrendSchema(CamelModel):
    interval: str
    trend: Literal["bullish", "bearish", "neutral"]
    signal: SignalValue
    reason: str
    price_change: float
    candle_count: int


class MultiTimeframeResponse(CamelModel):
    """Response schema for the technical (multi-timeframe) endpoint."""

    symbol: str
    timeframes: list[TimeframeTrendSchema]
    overall_signal: SignalValue
    overall_summary: str

    @classmethod
    def from_domain(cls, analysis: MultiTimeframeAnalysis) -> "MultiTimeframeResponse":
        return cls(
            symbol=analysis.symbol,
            timeframes=[
                TimeframeTrendSchema(
                    interval=t.interval,
                    trend=t.trend.value,
                    signal=t.vote.value,
                    reason=t.reason,
                    price_change=round(t.price_change, 6),
                    candle_count=t.candle_count,
                )
                for t in analysis.timeframes
            ],
            overall_signal=analysis.overall_signal.value,
            overall_summary=analysis.overall_summary,
        )


class OnChainResponse(CamelModel):
    """Response schema for the on-chain endpoint."""

    symbol: str
    active_addresses_24h: int
    new_addresses_24h: int
    transaction_count_24h: int
    large_transaction_count_24h: int
    circulating_supply: float
    supply_on_exchanges_pct: float
    supply_in_smart_contracts_pct: float
    whale_accumulation_score: float = Field(..., ge=-1, le=1)
    top100_holders_pct: float
    summary: str
    fields_reported: int
    last_updated: datetime
    whale_score_reported: bool

    @classmethod
    def from_domain(cls, metrics: OnChainMetrics) -> "OnChainResponse":
        return cls(
            symbol=metrics.symbol,
            active_addresses_24h=metrics.active_addresses_24h,
            new_addresses_24h=metrics.new_addresses_24h,
            transaction_count_24h=metrics.transaction_count_24h,
            large_transaction_count_24h=metrics.large_transaction_count_24h,
            circulating_supply=metrics.circulating_supply,
            supply_on_exchanges_pct=metrics.supply_on_exchanges_pct,
            supply_in_smart_contracts_pct=metrics.supply_in_smart_contracts_pct,
            whale_accumulation_score=metrics.whale_accumulation_score,
            top100_holders_pct=metrics.top100_holders_pct,
            summary=metrics.summary,
            fields_reported=metrics.fields_reported,
            last_updated=metrics.last_updated,
            whale_score_reported=metrics.whale_score_reported,
        )


class SentimentResponse(CamelModel):
    """Response schema for the sentiment endpoint."""

    symbol: str
    score: float = Field(..., ge=-1, le=1)
    source_count: int
    sources: dict[str, float]
    summary: str
    last_updated: datetime

    @classmethod
    def from_domain(cls, breakdown: SentimentBreakdown) -> "SentimentResponse":
        return cls(
            symbol=breakdown.symbol,
            score=breakdown.score,
            source_count=breakdown.source_count,
            sources=dict(breakdown.sources),
            summary=breakdown.summary,
            last_updated=breakdown.last_updated,
        )
