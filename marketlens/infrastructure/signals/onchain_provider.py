"""
Adapter: CoinGecko on-chain metrics provider.

Implements OnChainMetricsPort using the public CoinGecko coin endpoint.
Only fields the upstream actually reports are returned; the on-chain
signal adapter fills the rest with baseline values.
"""

import logging
from typing import Any

import httpx

from marketlens.domain.signals.ports import OnChainMetricsPort
from marketlens.infrastructure.signals.coins import coingecko_id

logger = logging.getLogger(__name__)

# Share of 30-day transactions treated as large (whale-sized) transfers
LARGE_TX_RATIO = 0.002


class CoinGeckoOnChainProvider(OnChainMetricsPort):
    """Reads supply and activity figures for a coin from CoinGecko."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = "https://api.coingecko.com/api/v3",
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")

    async def fetch_metrics(self, symbol: str) -> dict[str, Any]:
        coin_id = coingecko_id(symbol)
        response = await self._client.get(
            f"{self._base_url}/coins/{coin_id}",
            params={
                "localization": "false",
                "tickers": "false",
                "market_data": "true",
                "community_data": "false",
                "developer_data": "true",
            },
        )
        response.raise_for_status()
        data = response.json()

        metrics: dict[str, Any] = {}
        market = data.get("market_data") or {}
        developer = data.get("developer_data") or {}

        supply = market.get("circulating_supply")
        if supply:
            metrics["circulating_supply"] = float(supply)

        active = developer.get("active_addresses_past_30_days")
        if active:
            metrics["active_addresses_24h"] = int(active)

        new = developer.get("new_addresses_past_30_days")
        if new:
            metrics["new_addresses_24h"] = int(new)

        tx_count = developer.get("tx_count_past_30_days")
        if tx_count:
            metrics["transaction_count_24h"] = int(tx_count)
            metrics["large_transaction_count_24h"] = int(tx_count * LARGE_TX_RATIO)

        logger.debug("CoinGecko reported %d fields for %s", len(metrics), coin_id)
        return metrics
