"""
Domain service: Consensus engine.

Fuses weighted analyst opinions into a single consensus opinion with
an explicit agreement score.
Pure business logic. No framework imports. No IO. No randomness.

Rules:
    - Signal: weighted SUM of integer scores (-2..2) mapped back to a
      category (>=1.5 strong_buy, >=0.5 buy, <=-1.5 strong_sell,
      <=-0.5 sell, else hold). Weights are relative trust, so the sum
      is not normalized.
    - Confidence and target price: weighted AVERAGE (divided by the
      total weight).
    - Agreement: mean of signal agreement (100 / 70 / 40) and
      confidence agreement (100 - |delta|).
    - Risk: the most severe input. Timeframe: the primary opinion's.
"""

import math
from datetime import datetime, timezone
from typing import Optional, Sequence

from marketlens.domain.signals.entities import (
    CONSENSUS_SOURCE,
    ConsensusResult,
    DirectionalOpinion,
    RiskLevel,
    Timeframe,
    TradingSignal,
    WeightedOpinion,
)
from marketlens.domain.signals.errors import ConsensusInputError

STRONG_THRESHOLD = 1.5
WEAK_THRESHOLD = 0.5

SIGNAL_AGREEMENT_SAME = 100
SIGNAL_AGREEMENT_ADJACENT = 70
SIGNAL_AGREEMENT_APART = 40

STRONG_AGREEMENT_ABOVE = 70
MODERATE_AGREEMENT_ABOVE = 50

REASONING_LABELS = {
    "technical": "Technical Analysis",
    "risk": "Risk Analysis",
}


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return int(math.floor(value + 0.5))


def score_to_signal(weighted_score: float) -> TradingSignal:
    """Map a weighted signal score back onto the categorical scale."""
    if weighted_score >= STRONG_THRESHOLD:
        return TradingSignal.STRONG_BUY
    if weighted_score >= WEAK_THRESHOLD:
        return TradingSignal.BUY
    if weighted_score <= -STRONG_THRESHOLD:
        return TradingSignal.STRONG_SELL
    if weighted_score <= -WEAK_THRESHOLD:
        return TradingSignal.SELL
    return TradingSignal.HOLD


def signal_agreement(a: DirectionalOpinion, b: DirectionalOpinion) -> int:
    """Categorical closeness of two opinions."""
    distance = abs(a.signal.score - b.signal.score)
    if distance == 0:
        return SIGNAL_AGREEMENT_SAME
    if distance == 1:
        return SIGNAL_AGREEMENT_ADJACENT
    return SIGNAL_AGREEMENT_APART


def agreement(a: DirectionalOpinion, b: DirectionalOpinion) -> int:
    """Agreement score in [0, 100] between two opinions. Symmetric.

    Opposite signals with equal confidence still score 70: the two
    terms are averaged independently. Kept for compatibility.
    """
    confidence_agreement = 100 - abs(a.confidence - b.confidence)
    return round_half_up((signal_agreement(a, b) + confidence_agreement) / 2)


def agreement_phrase(score: int) -> str:
    """Qualitative phrase used in the consensus reasoning."""
    if score > STRONG_AGREEMENT_ABOVE:
        return "strongly agree"
    if score > MODERATE_AGREEMENT_ABOVE:
        return "moderately agree"
    return "have differing views"


class ConsensusEngine:
    """Fuses weighted opinions into a ConsensusResult.

    The first opinion is the primary one: it provides the consensus
    timeframe and is the reference for the agreement score.
    """

    def fuse(
        self,
        weighted: Sequence[WeightedOpinion],
        now: Optional[datetime] = None,
    ) -> ConsensusResult:
        """Compute the consensus of the given opinions.

        Args:
            weighted: Opinions with their relative weights, primary first.
            now: Creation timestamp. Defaults to the current UTC time.

        Returns:
            The fused ConsensusResult.

        Raises:
            ConsensusInputError: If the input violates the engine contract.
        """
        self._validate(weighted)

        total_weight = sum(w.weight for w in weighted)
        weighted_score = sum(w.weight * w.opinion.signal.score for w in weighted)
        confidence = round_half_up(
            sum(w.weight * w.opinion.confidence for w in weighted) / total_weight
        )
        target_price = (
            sum(w.weight * w.opinion.target_price for w in weighted) / total_weight
        )

        primary = weighted[0].opinion
        others = [w.opinion for w in weighted[1:]]
        if others:
            agreement_score = round_half_up(
                sum(agreement(primary, other) for other in others) / len(others)
            )
        else:
            agreement_score = 100

        risk_level = max(
            (w.opinion.risk_level for w in weighted), key=lambda r: r.severity
        )

        consensus = DirectionalOpinion(
            source=CONSENSUS_SOURCE,
            signal=score_to_signal(weighted_score),
            confidence=max(0, min(100, confidence)),
            target_price=target_price,
            reasoning=self._compose_reasoning(weighted, agreement_score),
            risk_level=risk_level,
            timeframe=primary.timeframe,
        )

        return ConsensusResult(
            consensus=consensus,
            individual={w.opinion.source: w.opinion for w in weighted},
            agreement=agreement_score,
            created_at=now or datetime.now(timezone.utc),
        )

    @staticmethod
    def _validate(weighted: Sequence[WeightedOpinion]) -> None:
        if not weighted:
            raise ConsensusInputError("no opinions to fuse")

        if sum(w.weight for w in weighted) <= 0:
            raise ConsensusInputError("total weight must be positive")

        seen: set[str] = set()
        for item in weighted:
            opinion = item.opinion
            if item.weight < 0:
                raise ConsensusInputError(f"negative weight for {opinion.source}")
            if not isinstance(opinion.signal, TradingSignal):
                raise ConsensusInputError(f"unknown signal {opinion.signal!r}")
            if not isinstance(opinion.risk_level, RiskLevel):
                raise ConsensusInputError(f"unknown risk level {opinion.risk_level!r}")
            if not isinstance(opinion.timeframe, Timeframe):
                raise ConsensusInputError(f"unknown timeframe {opinion.timeframe!r}")
            if not 0 <= opinion.confidence <= 100:
                raise ConsensusInputError(
                    f"confidence {opinion.confidence} out of range for {opinion.source}"
                )
            if opinion.source in seen:
                raise ConsensusInputError(f"duplicate source {opinion.source}")
            seen.add(opinion.source)

    @staticmethod
    def _compose_reasoning(
        weighted: Sequence[WeightedOpinion], agreement_score: int
    ) -> str:
        parts = []
        for item in weighted:
            source = item.opinion.source
            label = REASONING_LABELS.get(source, f"{source.replace('_', ' ').title()} Analysis")
            parts.append(f"**{label}:** {item.opinion.reasoning}")

        subject = "Both models" if len(weighted) == 2 else "The models"
        parts.append(
            f"**Consensus:** {subject} {agreement_phrase(agreement_score)} "
            "on the market direction."
        )
        return "\n\n".join(parts)
