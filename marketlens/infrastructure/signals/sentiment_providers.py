"""
Adapters: Social sentiment providers.

Each provider implements SentimentProviderPort and returns a score in
[-100, 100] or raises. Failures are handled by the sentiment signal
adapter, which excludes the provider from the average.
"""

import logging
import math
from typing import Any

import httpx

from marketlens.domain.signals.ports import SentimentProviderPort
from marketlens.infrastructure.signals.coins import coin_name

logger = logging.getLogger(__name__)


def _clamp_score(value: float) -> float:
    if not math.isfinite(value):
        raise ValueError(f"Sentiment score {value} is not a finite number")
    return max(-100.0, min(100.0, value))


class FearGreedSentimentProvider(SentimentProviderPort):
    """Market-wide Fear & Greed index from alternative.me.

    The index (0 = extreme fear, 100 = extreme greed) is re-centred
    to [-100, 100]. The same value applies to every symbol.
    """

    name = "fear_greed"

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str = "https://api.alternative.me/fng/?limit=1",
    ) -> None:
        self._client = client
        self._url = url

    async def fetch_score(self, symbol: str) -> float:
        response = await self._client.get(self._url)
        response.raise_for_status()
        payload = response.json()
        try:
            value = float(payload["data"][0]["value"])
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise ValueError("Unexpected Fear & Greed payload") from exc
        return _clamp_score((value - 50) * 2)


class JsonSentimentProvider(SentimentProviderPort):
    """Generic JSON endpoint exposing a sentiment score.

    Args:
        name: Provider label reported in the sentiment breakdown.
        client: Shared HTTP client.
        url_template: URL with ``{coin}`` and/or ``{symbol}`` placeholders.
        score_path: Dotted path to the score in the response body,
            e.g. ``data.sentiment``. The score must already be on the
            [-100, 100] scale.
        headers: Extra request headers (API keys).
    """

    def __init__(
        self,
        name: str,
        client: httpx.AsyncClient,
        url_template: str,
        score_path: str,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.name = name
        self._client = client
        self._url_template = url_template
        self._score_path = score_path
        self._headers = headers or {}

    async def fetch_score(self, symbol: str) -> float:
        url = self._url_template.format(coin=coin_name(symbol), symbol=symbol)
        response = await self._client.get(url, headers=self._headers)
        response.raise_for_status()
        value = _resolve_path(response.json(), self._score_path)
        try:
            return _clamp_score(float(value))
        except (TypeError, ValueError) as exc:
            raise ValueError(f"{self.name}: score is not numeric") from exc


def _resolve_path(payload: Any, path: str) -> Any:
    """Walk a dotted path through nested dicts and lists."""
    current = payload
    for part in path.split("."):
        if isinstance(current, list) and part.isdigit():
            current = current[int(part)]
        elif isinstance(current, dict) and part in current:
            current = current[part]
        else:
            raise ValueError(f"Path '{path}' not found in sentiment payload")
    return current
