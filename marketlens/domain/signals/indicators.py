"""
Technical indicators for market snapshots.

Computes the indicators attached to a MarketSnapshot from daily closes:
- SMA 20 / SMA 50
- RSI (Wilder smoothing)
- MACD (12, 26, 9)
- Bollinger Bands (20, 2 standard deviations)

Indicators that need more history than available are left as None.
Unlike model features, nothing is shifted: the snapshot describes the
latest closed candle.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from marketlens.domain.signals.entities import BollingerBands, MacdValue


@dataclass(frozen=True)
class IndicatorSet:
    """Latest indicator values, None where history is too short."""

    rsi: Optional[float] = None
    macd: Optional[MacdValue] = None
    sma20: Optional[float] = None
    sma50: Optional[float] = None
    bollinger: Optional[BollingerBands] = None


class TechnicalIndicators:
    """Computes the latest indicator values from a close series."""

    def __init__(
        self,
        rsi_window: int = 14,
        macd_fast: int = 12,
        macd_slow: int = 26,
        macd_signal: int = 9,
        bollinger_window: int = 20,
        bollinger_std: float = 2.0,
    ) -> None:
        self._rsi_window = rsi_window
        self._macd_fast = macd_fast
        self._macd_slow = macd_slow
        self._macd_signal = macd_signal
        self._boll_window = bollinger_window
        self._boll_std = bollinger_std

    def compute(self, closes: Sequence[float]) -> IndicatorSet:
        """Compute indicators from closes ordered oldest first.

        Args:
            closes: Closing prices, oldest first.

        Returns:
            The latest value of every indicator that has enough history.
        """
        close = pd.Series(list(closes), dtype=float)
        if close.empty:
            return IndicatorSet()

        sma20 = _last(close.rolling(window=20).mean())
        sma50 = _last(close.rolling(window=50).mean())

        rsi = None
        if len(close) > self._rsi_window:
            rsi = _last(self._compute_rsi(close, self._rsi_window))

        macd = None
        if len(close) >= self._macd_slow:
            ema_fast = close.ewm(span=self._macd_fast, adjust=False).mean()
            ema_slow = close.ewm(span=self._macd_slow, adjust=False).mean()
            macd_line = ema_fast - ema_slow
            signal_line = macd_line.ewm(span=self._macd_signal, adjust=False).mean()
            value, signal = _last(macd_line), _last(signal_line)
            if value is not None and signal is not None:
                macd = MacdValue(value=value, signal=signal, histogram=value - signal)

        bollinger = None
        middle = _last(close.rolling(window=self._boll_window).mean())
        std = _last(close.rolling(window=self._boll_window).std())
        if middle is not None and std is not None:
            bollinger = BollingerBands(
                upper=middle + self._boll_std * std,
                middle=middle,
                lower=middle - self._boll_std * std,
            )

        return IndicatorSet(
            rsi=rsi, macd=macd, sma20=sma20, sma50=sma50, bollinger=bollinger
        )

    @staticmethod
    def _compute_rsi(close: pd.Series, window: int) -> pd.Series:
        """Relative Strength Index with Wilder's exponential smoothing."""
        delta = close.diff()
        gain = delta.clip(lower=0)
        loss = -delta.clip(upper=0)
        avg_gain = gain.ewm(alpha=1 / window, min_periods=window, adjust=False).mean()
        avg_loss = loss.ewm(alpha=1 / window, min_periods=window, adjust=False).mean()
        rs = avg_gain / avg_loss.replace(0, np.nan)
        rsi = 100 - (100 / (1 + rs))
        # No losses: maximal strength, or flat when nothing moved either
        rsi = rsi.mask((avg_loss == 0) & (avg_gain > 0), 100.0)
        return rsi.mask((avg_loss == 0) & (avg_gain == 0), 50.0)


def _last(series: pd.Series) -> Optional[float]:
    """Return the final value as a float, or None when missing."""
    if series.empty:
        return None
    value = series.iloc[-1]
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    return float(value)
