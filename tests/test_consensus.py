"""
Tests for the consensus engine.

Pure domain tests: no IO, no mocks.
"""

from dataclasses import replace
from datetime import datetime, timezone

import pytest

from conftest import make_opinion
from marketlens.domain.signals.consensus import (
    ConsensusEngine,
    agreement,
    agreement_phrase,
    round_half_up,
    score_to_signal,
)
from marketlens.domain.signals.entities import (
    FALLBACK_REASONING,
    ConsensusResult,
    DirectionalOpinion,
    RiskLevel,
    Timeframe,
    TradingSignal,
    WeightedOpinion,
)
from marketlens.domain.signals.errors import ConsensusInputError

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _pair(technical: DirectionalOpinion, risk: DirectionalOpinion) -> list[WeightedOpinion]:
    return [WeightedOpinion(0.40, technical), WeightedOpinion(0.35, risk)]


@pytest.fixture
def engine() -> ConsensusEngine:
    return ConsensusEngine()


# ══════════════════════════════════════════════════════════════════════
# Helpers
# ══════════════════════════════════════════════════════════════════════


class TestHelpers:
    """Tests for the module-level scoring helpers."""

    @pytest.mark.parametrize(
        "score, expected",
        [
            (2.0, TradingSignal.STRONG_BUY),
            (1.5, TradingSignal.STRONG_BUY),
            (1.49, TradingSignal.BUY),
            (0.5, TradingSignal.BUY),
            (0.49, TradingSignal.HOLD),
            (-0.49, TradingSignal.HOLD),
            (-0.5, TradingSignal.SELL),
            (-1.5, TradingSignal.STRONG_SELL),
        ],
    )
    def test_score_thresholds(self, score: float, expected: TradingSignal) -> None:
        assert score_to_signal(score) is expected

    def test_round_half_up(self) -> None:
        assert round_half_up(72.5) == 73
        assert round_half_up(2.5) == 3
        assert round_half_up(75.33) == 75

    def test_agreement_phrases(self) -> None:
        assert agreement_phrase(71) == "strongly agree"
        assert agreement_phrase(70) == "moderately agree"
        assert agreement_phrase(51) == "moderately agree"
        assert agreement_phrase(50) == "have differing views"


# ══════════════════════════════════════════════════════════════════════
# Agreement
# ══════════════════════════════════════════════════════════════════════


class TestAgreement:
    """Tests for the pairwise agreement score."""

    def test_full_agreement_is_100(self) -> None:
        a = make_opinion("technical", TradingSignal.SELL, confidence=64)
        b = make_opinion("risk", TradingSignal.SELL, confidence=64)
        assert agreement(a, b) == 100

    def test_maximal_disagreement_is_20(self) -> None:
        a = make_opinion("technical", TradingSignal.STRONG_BUY, confidence=0)
        b = make_opinion("risk", TradingSignal.STRONG_SELL, confidence=100)
        assert agreement(a, b) == 20

    def test_adjacent_signals_average_with_confidence(self) -> None:
        a = make_opinion("technical", TradingSignal.BUY, confidence=60)
        b = make_opinion("risk", TradingSignal.HOLD, confidence=60)
        # (70 + 100) / 2
        assert agreement(a, b) == 85

    @pytest.mark.parametrize(
        "first, second",
        [
            ((TradingSignal.BUY, 80), (TradingSignal.SELL, 35)),
            ((TradingSignal.STRONG_SELL, 12), (TradingSignal.HOLD, 99)),
            ((TradingSignal.HOLD, 50), (TradingSignal.BUY, 51)),
        ],
    )
    def test_symmetric(self, first, second) -> None:
        a = make_opinion("technical", first[0], confidence=first[1])
        b = make_opinion("risk", second[0], confidence=second[1])
        assert agreement(a, b) == agreement(b, a)


# ══════════════════════════════════════════════════════════════════════
# Fusion
# ══════════════════════════════════════════════════════════════════════


class TestFuse:
    """Tests for ConsensusEngine.fuse."""

    def test_strong_buy_scenario(self, engine: ConsensusEngine) -> None:
        """buy/80/105% with buy/70/104% fuses into buy, 75, 104.53%."""
        price = 100.0
        technical = make_opinion(
            "technical", TradingSignal.BUY, 80, target_price=price * 1.05
        )
        risk = make_opinion("risk", TradingSignal.BUY, 70, target_price=price * 1.04)

        result = engine.fuse(_pair(technical, risk), now=FIXED_NOW)

        assert result.consensus.signal is TradingSignal.BUY
        assert result.consensus.confidence == 75
        assert result.consensus.target_price == pytest.approx(104.5333, rel=1e-4)
        assert result.agreement == 95
        assert result.consensus.source == "consensus"
        assert result.created_at == FIXED_NOW

    def test_full_disagreement_scenario_keeps_moderate_agreement(
        self, engine: ConsensusEngine
    ) -> None:
        """Opposite signals with equal confidence still score 70."""
        technical = make_opinion("technical", TradingSignal.STRONG_SELL, 90)
        risk = make_opinion("risk", TradingSignal.STRONG_BUY, 90)

        result = engine.fuse(_pair(technical, risk))

        assert result.consensus.signal is TradingSignal.HOLD
        assert result.agreement == 70
        assert "moderately agree" in result.consensus.reasoning

    def test_weighted_sum_reaches_strong_buy(self, engine: ConsensusEngine) -> None:
        technical = make_opinion("technical", TradingSignal.STRONG_BUY, 90)
        risk = make_opinion("risk", TradingSignal.STRONG_BUY, 90)
        # 2 * 0.40 + 2 * 0.35 = 1.5
        result = engine.fuse(_pair(technical, risk))
        assert result.consensus.signal is TradingSignal.STRONG_BUY

    def test_deterministic(self, engine: ConsensusEngine) -> None:
        technical = make_opinion("technical", TradingSignal.SELL, 61.5, target_price=97)
        risk = make_opinion("risk", TradingSignal.HOLD, 44, target_price=99)

        first = engine.fuse(_pair(technical, risk), now=FIXED_NOW)
        second = engine.fuse(_pair(technical, risk), now=FIXED_NOW)

        assert first == second
        assert first.to_dict() == second.to_dict()

    @pytest.mark.parametrize(
        "risk_levels, expected",
        [
            ((RiskLevel.LOW, RiskLevel.HIGH), RiskLevel.HIGH),
            ((RiskLevel.HIGH, RiskLevel.LOW), RiskLevel.HIGH),
            ((RiskLevel.LOW, RiskLevel.MEDIUM), RiskLevel.MEDIUM),
            ((RiskLevel.LOW, RiskLevel.LOW), RiskLevel.LOW),
        ],
    )
    def test_risk_is_most_severe(self, engine, risk_levels, expected) -> None:
        technical = make_opinion("technical", risk_level=risk_levels[0])
        risk = make_opinion("risk", risk_level=risk_levels[1])
        assert engine.fuse(_pair(technical, risk)).consensus.risk_level is expected

    def test_timeframe_follows_primary(self, engine: ConsensusEngine) -> None:
        technical = make_opinion("technical", timeframe=Timeframe.LONG)
        risk = make_opinion("risk", timeframe=Timeframe.SHORT)
        assert engine.fuse(_pair(technical, risk)).consensus.timeframe is Timeframe.LONG

    @pytest.mark.parametrize("conf_a, conf_b", [(0, 0), (100, 100), (0, 100), (33.3, 99.9)])
    def test_confidence_bounded(self, engine, conf_a, conf_b) -> None:
        technical = make_opinion("technical", confidence=conf_a)
        risk = make_opinion("risk", confidence=conf_b)
        confidence = engine.fuse(_pair(technical, risk)).consensus.confidence
        assert 0 <= confidence <= 100

    def test_reasoning_quotes_each_analyst(self, engine: ConsensusEngine) -> None:
        technical = make_opinion("technical", reasoning="Breakout above resistance.")
        risk = make_opinion("risk", reasoning="Volatility is elevated.")

        reasoning = engine.fuse(_pair(technical, risk)).consensus.reasoning

        assert reasoning.startswith("**Technical Analysis:** Breakout above resistance.")
        assert "**Risk Analysis:** Volatility is elevated." in reasoning
        assert reasoning.endswith(
            "**Consensus:** Both models strongly agree on the market direction."
        )

    def test_individual_opinions_kept_by_source(self, engine: ConsensusEngine) -> None:
        technical = make_opinion("technical")
        risk = make_opinion("risk", TradingSignal.HOLD)
        result = engine.fuse(_pair(technical, risk))
        assert result.individual == {"technical": technical, "risk": risk}

    def test_fallback_opinions_fuse_to_hold(self, engine: ConsensusEngine) -> None:
        technical = DirectionalOpinion.fallback("technical", 250.0)
        risk = DirectionalOpinion.fallback("risk", 250.0)

        result = engine.fuse(_pair(technical, risk))

        assert result.consensus.signal is TradingSignal.HOLD
        assert result.consensus.confidence == 50
        assert result.consensus.target_price == pytest.approx(250.0)
        assert result.agreement == 100
        assert FALLBACK_REASONING in result.consensus.reasoning

    def test_three_opinions_average_agreement_with_primary(
        self, engine: ConsensusEngine
    ) -> None:
        primary = make_opinion("technical", TradingSignal.BUY, 80)
        same = make_opinion("risk", TradingSignal.BUY, 80)
        opposite = make_opinion("macro", TradingSignal.SELL, 80)

        result = engine.fuse(
            [
                WeightedOpinion(0.40, primary),
                WeightedOpinion(0.35, same),
                WeightedOpinion(0.25, opposite),
            ]
        )

        # (100 + 70) / 2
        assert result.agreement == 85
        assert "**Macro Analysis:**" in result.consensus.reasoning
        assert "The models" in result.consensus.reasoning

    def test_result_round_trips_through_dict(self, engine: ConsensusEngine) -> None:
        result = engine.fuse(
            _pair(make_opinion("technical"), make_opinion("risk", TradingSignal.SELL)),
            now=FIXED_NOW,
        )
        assert ConsensusResult.from_dict(result.to_dict()) == result


class TestFuseValidation:
    """Contract violations raise ConsensusInputError."""

    def test_empty_input(self, engine: ConsensusEngine) -> None:
        with pytest.raises(ConsensusInputError):
            engine.fuse([])

    def test_zero_total_weight(self, engine: ConsensusEngine) -> None:
        with pytest.raises(ConsensusInputError):
            engine.fuse(
                [
                    WeightedOpinion(0, make_opinion("technical")),
                    WeightedOpinion(0, make_opinion("risk")),
                ]
            )

    def test_confidence_out_of_range(self, engine: ConsensusEngine) -> None:
        with pytest.raises(ConsensusInputError):
            engine.fuse(_pair(make_opinion("technical", confidence=101), make_opinion("risk")))

    def test_unknown_signal(self, engine: ConsensusEngine) -> None:
        bad = replace(make_opinion("technical"), signal="very_buy")
        with pytest.raises(ConsensusInputError):
            engine.fuse(_pair(bad, make_opinion("risk")))

    def test_duplicate_source(self, engine: ConsensusEngine) -> None:
        with pytest.raises(ConsensusInputError):
            engine.fuse(_pair(make_opinion("technical"), make_opinion("technical")))
