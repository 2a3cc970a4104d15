"""
Domain service: Multi-timeframe trend voting.

Classifies each candle interval as bullish, bearish or neutral by
comparing the latest close with the average of the earliest closes,
then aggregates the per-interval votes with a majority rule.
Pure business logic. No framework imports. No IO.
"""

from typing import Sequence

from marketlens.domain.signals.entities import (
    Candle,
    MultiTimeframeAnalysis,
    TimeframeTrend,
    TradingSignal,
    TrendDirection,
)

DEFAULT_INTERVALS = ("1h", "4h", "1d", "1w")
DEFAULT_CANDLE_LIMIT = 20
HISTORICAL_WINDOW = 10
TREND_THRESHOLD = 0.01


def classify_trend(
    interval: str,
    candles: Sequence[Candle],
    threshold: float = TREND_THRESHOLD,
    window: int = HISTORICAL_WINDOW,
) -> TimeframeTrend:
    """Classify the trend of one interval.

    Args:
        interval: Candle interval label (e.g. "4h").
        candles: Candles ordered oldest first. May be empty.
        threshold: Fractional move that counts as a trend (0.01 = 1%).
        window: Number of earliest closes forming the historical average.

    Returns:
        A neutral/hold vote when there is no usable data.
    """
    closes = [c.close for c in candles]
    if not closes:
        return TimeframeTrend(
            interval=interval,
            trend=TrendDirection.NEUTRAL,
            vote=TradingSignal.HOLD,
            reason="No candle data available.",
        )

    historical = closes[: min(window, len(closes))]
    average = sum(historical) / len(historical)
    if average <= 0:
        return TimeframeTrend(
            interval=interval,
            trend=TrendDirection.NEUTRAL,
            vote=TradingSignal.HOLD,
            reason="Price history is not usable.",
            candle_count=len(closes),
        )

    change = (closes[-1] - average) / average
    periods = len(historical)

    if change > threshold:
        return TimeframeTrend(
            interval=interval,
            trend=TrendDirection.BULLISH,
            vote=TradingSignal.BUY,
            reason=(
                f"Price is up {change:.2%} against the first {periods} periods, "
                "indicating an upward trend."
            ),
            price_change=change,
            candle_count=len(closes),
        )
    if change < -threshold:
        return TimeframeTrend(
            interval=interval,
            trend=TrendDirection.BEARISH,
            vote=TradingSignal.SELL,
            reason=(
                f"Price is down {abs(change):.2%} against the first {periods} periods, "
                "indicating a downward trend."
            ),
            price_change=change,
            candle_count=len(closes),
        )
    return TimeframeTrend(
        interval=interval,
        trend=TrendDirection.NEUTRAL,
        vote=TradingSignal.HOLD,
        reason="Price is consolidating within a tight range.",
        price_change=change,
        candle_count=len(closes),
    )


def aggregate_trends(
    symbol: str, trends: Sequence[TimeframeTrend]
) -> MultiTimeframeAnalysis:
    """Combine per-interval votes into one signal.

    A strict majority of intervals voting the same way yields buy/sell;
    a unanimous vote yields strong_buy/strong_sell; anything else holds.
    """
    total = len(trends)
    buys = sum(1 for t in trends if t.vote is TradingSignal.BUY)
    sells = sum(1 for t in trends if t.vote is TradingSignal.SELL)
    majority = total // 2 + 1

    if total and buys >= majority:
        signal = TradingSignal.STRONG_BUY if buys == total else TradingSignal.BUY
        summary = f"Strong bullish alignment across {buys}/{total} timeframes."
    elif total and sells >= majority:
        signal = TradingSignal.STRONG_SELL if sells == total else TradingSignal.SELL
        summary = f"Strong bearish alignment across {sells}/{total} timeframes."
    elif buys > sells:
        signal = TradingSignal.HOLD
        summary = "Slightly bullish bias, but not enough conviction for a strong signal."
    elif sells > buys:
        signal = TradingSignal.HOLD
        summary = "Slightly bearish bias, but not enough conviction for a strong signal."
    else:
        signal = TradingSignal.HOLD
        summary = "Mixed signals across timeframes. Maintain current position."

    return MultiTimeframeAnalysis(
        symbol=symbol,
        timeframes=list(trends),
        overall_signal=signal,
        overall_summary=summary,
    )


def signal_to_unit_score(signal: TradingSignal) -> float:
    """Map a categorical signal onto [-1, 1] (strong_buy = 1.0, buy = 0.5)."""
    return signal.score / 2
