"""
Data Transfer Objects for the signals application layer.

DTOs carry data between the interface and application layers.
They are plain dataclasses with no behavior.
"""

from dataclasses import dataclass, field

from marketlens.domain.signals.entities import SignalScore


@dataclass(frozen=True)
class SymbolQuery:
    """Input DTO for any per-symbol lookup.

    Attributes:
        symbol: Exchange trading pair, upper-case (e.g. BTCUSDT).
    """

    symbol: str


@dataclass(frozen=True)
class MarketSignalsResult:
    """Output DTO for the combined signal sources of a symbol.

    Attributes:
        symbol: Exchange trading pair.
        signals: One SignalScore per configured source that answered.
    """

    symbol: str
    signals: list[SignalScore] = field(default_factory=list)

    @property
    def average_score(self) -> float:
        """Unweighted mean of the scores, 0 when there are none."""
        if not self.signals:
            return 0.0
        return round(sum(s.score for s in self.signals) / len(self.signals), 2)
