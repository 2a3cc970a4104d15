"""
FastAPI router for the signals bounded context.

All routes delegate to use cases. No business logic here.
Input validation is handled by Pydantic schemas and the symbol
dependency. Error mapping is handled by centralized error handlers.
"""

import re

from fastapi import APIRouter, Depends, Request

from marketlens.application.signals.build_market_snapshot import (
    BuildMarketSnapshotUseCase,
)
from marketlens.application.signals.dtos import SymbolQuery
from marketlens.application.signals.get_consensus_analysis import (
    GetConsensusAnalysisUseCase,
)
from marketlens.application.signals.get_market_signals import GetMarketSignalsUseCase
from marketlens.application.signals.get_signal_details import (
    GetMultiTimeframeAnalysisUseCase,
    GetOnChainMetricsUseCase,
    GetSentimentUseCase,
)
from marketlens.domain.signals.entities import (
    BollingerBands,
    MacdValue,
    MarketSnapshot,
)
from marketlens.domain.signals.errors import InvalidSymbolError
from marketlens.interfaces.signals.dependencies import (
    get_build_snapshot_use_case,
    get_consensus_use_case,
    get_market_signals_use_case,
    get_multi_timeframe_use_case,
    get_on_chain_use_case,
    get_sentiment_use_case,
)
from marketlens.interfaces.signals.schemas import (
    SYMBOL_MAX_LEN,
    SYMBOL_MIN_LEN,
    SYMBOL_PATTERN,
    ConsensusResponse,
    ErrorResponse,
    MarketSignalsResponse,
    MarketSnapshotRequest,
    MultiTimeframeResponse,
    OnChainResponse,
    SentimentResponse,
    SignalScoreSchema,
)
from marketlens.shared.security.rate_limiting import (
    DEFAULT_RATE_LIMIT,
    HEAVY_RATE_LIMIT,
    limiter,
)

router = APIRouter(prefix="/signals", tags=["signals"])

_SYMBOL_RE = re.compile(SYMBOL_PATTERN)

SYMBOL_ERRORS = {422: {"model": ErrorResponse}, 503: {"model": ErrorResponse}}


def valid_symbol(symbol: str) -> str:
    """Path dependency: upper-case and validate the symbol."""
    normalized = symbol.strip().upper()
    if not SYMBOL_MIN_LEN <= len(normalized) <= SYMBOL_MAX_LEN:
        raise InvalidSymbolError(symbol)
    if not _SYMBOL_RE.match(normalized):
        raise InvalidSymbolError(symbol)
    return normalized


def _snapshot_from_request(body: MarketSnapshotRequest) -> MarketSnapshot:
    return MarketSnapshot(
        symbol=body.symbol,
        current_price=body.current_price,
        price_change_24h=body.price_change_24h,
        volume_24h=body.volume_24h,
        high_24h=body.high_24h,
        low_24h=body.low_24h,
        rsi=body.rsi,
        macd=(
            MacdValue(
                value=body.macd.value,
                signal=body.macd.signal,
                histogram=body.macd.histogram,
            )
            if body.macd
            else None
        ),
        sma20=body.sma20,
        sma50=body.sma50,
        bollinger=(
            BollingerBands(
                upper=body.bollinger.upper,
                middle=body.bollinger.middle,
                lower=body.bollinger.lower,
            )
            if body.bollinger
            else None
        ),
    )


@router.post(
    "/consensus",
    response_model=ConsensusResponse,
    responses={422: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Analyst consensus for a snapshot",
    description=(
        "Runs the technical and risk analysts on the supplied market snapshot "
        "and returns their weighted consensus. Cached per 1% price bucket."
    ),
)
@limiter.limit(HEAVY_RATE_LIMIT)
async def consensus_for_snapshot(
    request: Request,
    body: MarketSnapshotRequest,
    use_case: GetConsensusAnalysisUseCase = Depends(get_consensus_use_case),
) -> ConsensusResponse:
    """Fuse analyst opinions for a caller-provided snapshot."""
    result = await use_case.execute(_snapshot_from_request(body))
    return ConsensusResponse.from_domain(result)


@router.get(
    "/{symbol}/consensus",
    response_model=ConsensusResponse,
    responses=SYMBOL_ERRORS,
    summary="Analyst consensus for a symbol",
    description="Builds a snapshot from live exchange data, then runs the consensus.",
)
@limiter.limit(HEAVY_RATE_LIMIT)
async def consensus_for_symbol(
    request: Request,
    symbol: str = Depends(valid_symbol),
    snapshot_use_case: BuildMarketSnapshotUseCase = Depends(get_build_snapshot_use_case),
    use_case: GetConsensusAnalysisUseCase = Depends(get_consensus_use_case),
) -> ConsensusResponse:
    """Snapshot the symbol from the exchange and fuse analyst opinions."""
    snapshot = await snapshot_use_case.execute(SymbolQuery(symbol=symbol))
    result = await use_case.execute(snapshot)
    return ConsensusResponse.from_domain(result)


@router.get(
    "/{symbol}",
    response_model=MarketSignalsResponse,
    responses={422: {"model": ErrorResponse}},
    summary="All signal scores",
    description="Technical, on-chain and sentiment scores, each in [-1, 1].",
)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def market_signals(
    request: Request,
    symbol: str = Depends(valid_symbol),
    use_case: GetMarketSignalsUseCase = Depends(get_market_signals_use_case),
) -> MarketSignalsResponse:
    """Return every configured signal score for a symbol."""
    result = await use_case.execute(SymbolQuery(symbol=symbol))
    return MarketSignalsResponse(
        symbol=result.symbol,
        signals=[SignalScoreSchema.from_domain(s) for s in result.signals],
        average_score=result.average_score,
    )


@router.get(
    "/{symbol}/technical",
    response_model=MultiTimeframeResponse,
    responses={422: {"model": ErrorResponse}},
    summary="Multi-timeframe trend analysis",
    description="Per-interval trend votes (1h, 4h, 1d, 1w) and the aggregated signal.",
)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def technical_analysis(
    request: Request,
    symbol: str = Depends(valid_symbol),
    use_case: GetMultiTimeframeAnalysisUseCase = Depends(get_multi_timeframe_use_case),
) -> MultiTimeframeResponse:
    """Return the multi-timeframe breakdown for a symbol."""
    analysis = await use_case.execute(SymbolQuery(symbol=symbol))
    return MultiTimeframeResponse.from_domain(analysis)


@router.get(
    "/{symbol}/on-chain",
    response_model=OnChainResponse,
    responses={422: {"model": ErrorResponse}},
    summary="On-chain metrics",
    description="Address, transaction, supply and whale metrics for the coin.",
)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def on_chain_metrics(
    request: Request,
    symbol: str = Depends(valid_symbol),
    use_case: GetOnChainMetricsUseCase = Depends(get_on_chain_use_case),
) -> OnChainResponse:
    """Return the on-chain metrics for a symbol."""
    metrics = await use_case.execute(SymbolQuery(symbol=symbol))
    return OnChainResponse.from_domain(metrics)


@router.get(
    "/{symbol}/sentiment",
    response_model=SentimentResponse,
    responses={422: {"model": ErrorResponse}},
    summary="Social sentiment",
    description="Per-provider sentiment scores and their normalized average.",
)
@limiter.limit(DEFAULT_RATE_LIMIT)
async def sentiment(
    request: Request,
    symbol: str = Depends(valid_symbol),
    use_case: GetSentimentUseCase = Depends(get_sentiment_use_case),
) -> SentimentResponse:
    """Return the sentiment breakdown for a symbol."""
    breakdown = await use_case.execute(SymbolQuery(symbol=symbol))
    return SentimentResponse.from_domain(breakdown)
