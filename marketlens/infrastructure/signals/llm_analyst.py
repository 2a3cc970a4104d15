"""
Adapter: LLM analyst personas.

Uses LiteLLM for provider-agnostic model access. Each persona asks its
model for a schema-constrained JSON opinion about a market snapshot:
- technical: technical patterns, momentum indicators, price action
- risk: risk/reward ratio, volatility, capital preservation

Any failure (timeout, transport error, empty or invalid content, schema
violation) is converted into the neutral fallback opinion.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Literal, Optional, Sequence

import litellm
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from marketlens.domain.signals.entities import (
    DirectionalOpinion,
    MarketSnapshot,
    RiskLevel,
    SignalScore,
    Timeframe,
    TradingSignal,
)
from marketlens.domain.signals.errors import AnalystResponseError
from marketlens.domain.signals.ports import AnalystPort, ReasoningBackendPort

logger = logging.getLogger(__name__)


OPINION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "signal": {"type": "string", "enum": [s.value for s in TradingSignal]},
        "confidence": {"type": "number", "minimum": 0, "maximum": 100},
        "targetPrice": {"type": "number"},
        "reasoning": {"type": "string"},
        "riskLevel": {"type": "string", "enum": [r.value for r in RiskLevel]},
        "timeframe": {"type": "string", "enum": [t.value for t in Timeframe]},
    },
    "required": [
        "signal",
        "confidence",
        "targetPrice",
        "reasoning",
        "riskLevel",
        "timeframe",
    ],
    "additionalProperties": False,
}


class OpinionPayload(BaseModel):
    """Validated model answer. Unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid")

    signal: Literal["strong_buy", "buy", "hold", "sell", "strong_sell"]
    confidence: float = Field(..., ge=0, le=100)
    targetPrice: float = Field(..., gt=0)
    reasoning: str = Field(..., min_length=1)
    riskLevel: Literal["low", "medium", "high"]
    timeframe: Literal["short", "medium", "long"]

    def to_opinion(self, source: str) -> DirectionalOpinion:
        return DirectionalOpinion(
            source=source,
            signal=TradingSignal(self.signal),
            confidence=self.confidence,
            target_price=self.targetPrice,
            reasoning=self.reasoning,
            risk_level=RiskLevel(self.riskLevel),
            timeframe=Timeframe(self.timeframe),
        )


@dataclass(frozen=True)
class Persona:
    """Prompt configuration of one analyst."""

    name: str
    system_prompt: str
    role_intro: str
    reasoning_hint: str
    focus: str
    schema_name: str
    extended_indicators: bool


PERSONAS: dict[str, Persona] = {
    "technical": Persona(
        name="technical",
        system_prompt=(
            "You are a professional cryptocurrency trading analyst "
            "specializing in technical analysis."
        ),
        role_intro="You are an expert cryptocurrency trader analyzing {symbol}.",
        reasoning_hint="detailed explanation",
        focus="Focus on technical patterns, momentum indicators, and price action.",
        schema_name="trading_analysis",
        extended_indicators=True,
    ),
    "risk": Persona(
        name="risk",
        system_prompt=(
            "You are a professional risk management analyst "
            "specializing in cryptocurrency trading."
        ),
        role_intro="You are a risk management expert analyzing {symbol} for trading.",
        reasoning_hint="detailed risk assessment",
        focus="Focus on risk/reward ratio, volatility, and capital preservation.",
        schema_name="risk_analysis",
        extended_indicators=False,
    ),
}


# ------------------------------------------------------------------
# Reasoning backend
# ------------------------------------------------------------------


class LiteLLMReasoningBackend(ReasoningBackendPort):
    """ReasoningBackendPort implemented with litellm.acompletion."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 800,
    ) -> None:
        self._api_key = api_key
        self._api_base = api_base
        self._temperature = temperature
        self._max_tokens = max_tokens

    async def complete_json(
        self,
        model: str,
        messages: list[dict[str, str]],
        schema_name: str,
        schema: dict[str, Any],
    ) -> str:
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
            "response_format": {
                "type": "json_schema",
                "json_schema": {"name": schema_name, "strict": True, "schema": schema},
            },
        }
        if self._api_key:
            kwargs["api_key"] = self._api_key
        if self._api_base:
            kwargs["api_base"] = self._api_base

        response = await litellm.acompletion(**kwargs)
        content = response.choices[0].message.content
        if not isinstance(content, str) or not content.strip():
            raise ValueError("Model returned no content")
        return content


# ------------------------------------------------------------------
# Analyst
# ------------------------------------------------------------------


class LLMAnalyst(AnalystPort):
    """AnalystPort asking one model persona for a directional opinion."""

    def __init__(
        self,
        persona: str,
        backend: ReasoningBackendPort,
        model: str,
        timeout: float = 30.0,
    ) -> None:
        if persona not in PERSONAS:
            raise ValueError(f"Unknown analyst persona: {persona}")
        self._persona = PERSONAS[persona]
        self._backend = backend
        self._model = model
        self._timeout = timeout
        self.name = persona

    async def analyze(
        self, snapshot: MarketSnapshot, signals: Sequence[SignalScore] = ()
    ) -> DirectionalOpinion:
        try:
            return await self._request_opinion(snapshot, signals)
        except AnalystResponseError as exc:
            logger.warning(
                "Analyst %s fell back for %s: %s", self.name, snapshot.symbol, exc.reason
            )
            return DirectionalOpinion.fallback(self.name, snapshot.current_price)

    async def _request_opinion(
        self, snapshot: MarketSnapshot, signals: Sequence[SignalScore]
    ) -> DirectionalOpinion:
        messages = [
            {"role": "system", "content": self._persona.system_prompt},
            {"role": "user", "content": build_prompt(self._persona, snapshot, signals)},
        ]
        try:
            content = await asyncio.wait_for(
                self._backend.complete_json(
                    self._model, messages, self._persona.schema_name, OPINION_SCHEMA
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            raise AnalystResponseError(self.name, "timed out") from exc
        except Exception as exc:
            raise AnalystResponseError(
                self.name, f"backend error ({type(exc).__name__})"
            ) from exc

        try:
            payload = OpinionPayload.model_validate(json.loads(content))
        except (json.JSONDecodeError, TypeError) as exc:
            raise AnalystResponseError(self.name, "invalid JSON") from exc
        except ValidationError as exc:
            raise AnalystResponseError(
                self.name, f"schema violation ({exc.error_count()} errors)"
            ) from exc

        opinion = payload.to_opinion(self.name)
        logger.debug(
            "Analyst %s: %s %s (confidence %.0f)",
            self.name,
            snapshot.symbol,
            opinion.signal.value,
            opinion.confidence,
        )
        return opinion


def build_prompt(
    persona: Persona, snapshot: MarketSnapshot, signals: Sequence[SignalScore] = ()
) -> str:
    """Render the user prompt for a persona."""
    lines = [
        persona.role_intro.format(symbol=snapshot.symbol),
        "",
        "Current Market Data:",
        f"- Price: ${snapshot.current_price}",
        f"- 24h Change: {snapshot.price_change_24h}%",
        f"- 24h Volume: ${snapshot.volume_24h}",
        f"- 24h High: ${snapshot.high_24h}",
        f"- 24h Low: ${snapshot.low_24h}",
    ]
    if snapshot.rsi is not None:
        lines.append(f"- RSI: {snapshot.rsi:.2f}")
    if snapshot.macd is not None:
        if persona.extended_indicators:
            lines.append(
                f"- MACD: {snapshot.macd.value:.2f} (Signal: {snapshot.macd.signal:.2f})"
            )
        else:
            lines.append(f"- MACD: {snapshot.macd.value:.2f}")
    if persona.extended_indicators:
        if snapshot.sma20 is not None:
            lines.append(f"- SMA20: ${snapshot.sma20:.2f}")
        if snapshot.sma50 is not None:
            lines.append(f"- SMA50: ${snapshot.sma50:.2f}")
        if snapshot.bollinger is not None:
            lines.append(
                f"- Bollinger Bands: {snapshot.bollinger.lower:.2f} / "
                f"{snapshot.bollinger.middle:.2f} / {snapshot.bollinger.upper:.2f}"
            )

    if signals:
        lines += ["", "Supporting Signals (score from -1 bearish to 1 bullish):"]
        for signal in signals:
            lines.append(f"- {signal.source}: {signal.score:+.2f} ({signal.summary})")

    lines += [
        "",
        "Provide a trading recommendation in JSON format:",
        "{",
        '  "signal": "strong_buy" | "buy" | "hold" | "sell" | "strong_sell",',
        '  "confidence": 0-100,',
        '  "targetPrice": number,',
        f'  "reasoning": "{persona.reasoning_hint}",',
        '  "riskLevel": "low" | "medium" | "high",',
        '  "timeframe": "short" | "medium" | "long"',
        "}",
        "",
        persona.focus,
    ]
    return "\n".join(lines)
