"""
Adapter: On-chain signal.

Turns a partial on-chain metrics mapping into OnChainMetrics, filling
absent fields with baseline constants, and exposes the whale
accumulation score as a SignalScore (source ``on_chain``). The signal
counts one data point only when the provider reported the whale score;
a baseline whale score is flagged in the signal summary and details.

Results are cached for 15 minutes. Provider failures produce the neutral
default metrics, which are not cached. The adapter never raises.
"""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Optional

from marketlens.application.signals import cache_keys
from marketlens.application.signals.cache_aside import CacheAside
from marketlens.application.signals.cache_keys import CacheTTL
from marketlens.domain.signals.entities import OnChainMetrics, SignalScore
from marketlens.domain.signals.ports import (
    OnChainDetailPort,
    OnChainMetricsPort,
    SignalSourcePort,
)

logger = logging.getLogger(__name__)

BASELINE_METRICS: dict[str, Any] = {
    "active_addresses_24h": 500_000,
    "new_addresses_24h": 100_000,
    "transaction_count_24h": 300_000,
    "large_transaction_count_24h": 500,
    "circulating_supply": 19_000_000.0,
    "supply_on_exchanges_pct": 15.0,
    "supply_in_smart_contracts_pct": 8.0,
    "whale_accumulation_score": 0.3,
    "top100_holders_pct": 45.0,
}

UNAVAILABLE_SUMMARY = "On-chain data temporarily unavailable."
BASELINE_NOTE = "Whale score is a baseline estimate, not a measurement."


def whale_summary(score: float) -> str:
    if score > 0.5:
        return "Whales are accumulating - bullish on-chain signal."
    if score > 0:
        return "Moderate whale accumulation detected."
    if score > -0.3:
        return "Neutral whale activity."
    return "Whales are distributing - bearish on-chain signal."


def build_metrics(
    symbol: str, reported: dict[str, Any], now: Optional[datetime] = None
) -> OnChainMetrics:
    """Merge reported fields over the baselines."""
    known = {k: v for k, v in reported.items() if k in BASELINE_METRICS and v is not None}
    values = {**BASELINE_METRICS, **known}
    whale = round(max(-1.0, min(1.0, float(values["whale_accumulation_score"]))), 2)
    return OnChainMetrics(
        symbol=symbol,
        active_addresses_24h=int(values["active_addresses_24h"]),
        new_addresses_24h=int(values["new_addresses_24h"]),
        transaction_count_24h=int(values["transaction_count_24h"]),
        large_transaction_count_24h=int(values["large_transaction_count_24h"]),
        circulating_supply=float(values["circulating_supply"]),
        supply_on_exchanges_pct=float(values["supply_on_exchanges_pct"]),
        supply_in_smart_contracts_pct=float(values["supply_in_smart_contracts_pct"]),
        whale_accumulation_score=whale,
        top100_holders_pct=float(values["top100_holders_pct"]),
        summary=whale_summary(whale),
        fields_reported=len(known),
        last_updated=now or datetime.now(timezone.utc),
        whale_score_reported="whale_accumulation_score" in known,
    )


def default_metrics(symbol: str) -> OnChainMetrics:
    """Neutral metrics used when the provider fails."""
    metrics = build_metrics(symbol, {"whale_accumulation_score": 0.0})
    return replace(
        metrics,
        summary=UNAVAILABLE_SUMMARY,
        fields_reported=0,
        whale_score_reported=False,
    )


class OnChainSignalAdapter(SignalSourcePort, OnChainDetailPort):
    """SignalSourcePort backed by an OnChainMetricsPort provider."""

    source_name = "on_chain"

    def __init__(
        self,
        provider: OnChainMetricsPort,
        cache: Optional[CacheAside] = None,
    ) -> None:
        self._provider = provider
        self._cache = cache

    async def get_metrics(self, symbol: str) -> OnChainMetrics:
        """Return the metrics for ``symbol``, or the neutral default."""

        async def compute() -> OnChainMetrics:
            reported = await self._provider.fetch_metrics(symbol)
            return build_metrics(symbol, reported)

        try:
            if self._cache is None:
                return await compute()
            return await self._cache.get_or_compute(
                cache_keys.on_chain(symbol),
                compute,
                CacheTTL.MEDIUM,
                serialize=OnChainMetrics.to_dict,
                deserialize=OnChainMetrics.from_dict,
            )
        except Exception as exc:
            logger.warning("On-chain metrics unavailable for %s: %s", symbol, exc)
            return default_metrics(symbol)

    async def fetch_signal(self, symbol: str) -> SignalScore:
        metrics = await self.get_metrics(symbol)
        summary = metrics.summary
        if not metrics.whale_score_reported and summary != UNAVAILABLE_SUMMARY:
            summary = f"{summary} {BASELINE_NOTE}"
        return SignalScore(
            source=self.source_name,
            score=metrics.whale_accumulation_score,
            data_points=1 if metrics.whale_score_reported else 0,
            summary=summary,
            details={
                "active_addresses_24h": metrics.active_addresses_24h,
                "large_transaction_count_24h": metrics.large_transaction_count_24h,
                "supply_on_exchanges_pct": metrics.supply_on_exchanges_pct,
                "top100_holders_pct": metrics.top100_holders_pct,
                "whale_score_source": (
                    "reported" if metrics.whale_score_reported else "baseline"
                ),
            },
        )
