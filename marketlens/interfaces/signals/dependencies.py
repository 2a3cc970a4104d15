"""
Dependency injection for the signals bounded context.

Provides FastAPI dependency functions that wire infrastructure
adapters into use cases via constructor injection.
These are the composition root for the signals context.

Long-lived resources (the shared HTTP client and the cache store) are
built once in the application lifespan and kept on ``app.state``.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import Depends, Request

from marketlens.application.signals.build_market_snapshot import (
    BuildMarketSnapshotUseCase,
)
from marketlens.application.signals.cache_aside import CacheAside
from marketlens.application.signals.get_consensus_analysis import (
    GetConsensusAnalysisUseCase,
    WeightedAnalyst,
)
from marketlens.application.signals.get_market_signals import GetMarketSignalsUseCase
from marketlens.application.signals.get_signal_details import (
    GetMultiTimeframeAnalysisUseCase,
    GetOnChainMetricsUseCase,
    GetSentimentUseCase,
)
from marketlens.core.config import Settings
from marketlens.domain.signals.ports import CacheStorePort, SentimentProviderPort
from marketlens.infrastructure.cache.memory_store import InMemoryCacheStore
from marketlens.infrastructure.cache.null_store import NullCacheStore
from marketlens.infrastructure.cache.redis_store import RedisCacheStore
from marketlens.infrastructure.signals.binance_market_data import (
    BinanceMarketDataAdapter,
)
from marketlens.infrastructure.signals.llm_analyst import (
    LiteLLMReasoningBackend,
    LLMAnalyst,
)
from marketlens.infrastructure.signals.onchain_provider import CoinGeckoOnChainProvider
from marketlens.infrastructure.signals.onchain_signal_adapter import (
    OnChainSignalAdapter,
)
from marketlens.infrastructure.signals.sentiment_providers import (
    FearGreedSentimentProvider,
    JsonSentimentProvider,
)
from marketlens.infrastructure.signals.sentiment_signal_adapter import (
    SentimentSignalAdapter,
)
from marketlens.infrastructure.signals.technical_signal_adapter import (
    TechnicalSignalAdapter,
)

logger = logging.getLogger(__name__)


def build_cache_store(settings: Settings) -> CacheStorePort:
    """Select the cache store from settings."""
    backend = settings.effective_cache_backend()
    if backend == "redis":
        logger.info("Cache backend: redis")
        return RedisCacheStore(redis_url=settings.redis_url)
    if backend == "memory":
        logger.info("Cache backend: in-memory")
        return InMemoryCacheStore()
    if backend != "none":
        logger.warning("Unknown cache backend '%s'; caching disabled", backend)
    else:
        logger.info("Cache backend: none (caching disabled)")
    return NullCacheStore()


def build_sentiment_providers(
    settings: Settings, client: httpx.AsyncClient
) -> list[SentimentProviderPort]:
    providers: list[SentimentProviderPort] = []
    if settings.fear_greed_url:
        providers.append(FearGreedSentimentProvider(client, settings.fear_greed_url))
    for name, endpoint in settings.sentiment_endpoints.items():
        if "url" not in endpoint or "score_path" not in endpoint:
            logger.warning("Sentiment endpoint '%s' needs url and score_path", name)
            continue
        headers = {}
        if endpoint.get("api_key"):
            headers["Authorization"] = f"Bearer {endpoint['api_key']}"
        providers.append(
            JsonSentimentProvider(
                name=name,
                client=client,
                url_template=endpoint["url"],
                score_path=endpoint["score_path"],
                headers=headers,
            )
        )
    return providers


@dataclass
class SignalsContainer:
    """Adapters shared by every request of the signals context."""

    settings: Settings
    http_client: httpx.AsyncClient
    cache_store: CacheStorePort
    cache: CacheAside
    market_data: BinanceMarketDataAdapter
    technical: TechnicalSignalAdapter
    on_chain: OnChainSignalAdapter
    sentiment: SentimentSignalAdapter
    analysts: list[WeightedAnalyst]
    owns_http_client: bool = True

    async def aclose(self) -> None:
        """Release the cache store and, when owned, the HTTP client."""
        await self.cache_store.close()
        if self.owns_http_client:
            await self.http_client.aclose()


def build_container(
    settings: Settings,
    http_client: Optional[httpx.AsyncClient] = None,
    cache_store: Optional[CacheStorePort] = None,
) -> SignalsContainer:
    """Build every adapter of the signals context from settings."""
    owns_client = http_client is None
    client = http_client or httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    store = cache_store or build_cache_store(settings)
    cache = CacheAside(store)

    market_data = BinanceMarketDataAdapter(
        client,
        base_url=settings.binance_base_url,
        cache=cache,
        timeout=settings.http_timeout_seconds,
    )
    backend = LiteLLMReasoningBackend(
        api_key=settings.llm_api_key,
        api_base=settings.llm_api_base,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
    )
    analysts = [
        WeightedAnalyst(
            LLMAnalyst(
                "technical",
                backend,
                settings.technical_model,
                timeout=settings.analyst_timeout_seconds,
            ),
            settings.technical_weight,
        ),
        WeightedAnalyst(
            LLMAnalyst(
                "risk",
                backend,
                settings.risk_model,
                timeout=settings.analyst_timeout_seconds,
            ),
            settings.risk_weight,
        ),
    ]

    return SignalsContainer(
        settings=settings,
        http_client=client,
        cache_store=store,
        cache=cache,
        market_data=market_data,
        technical=TechnicalSignalAdapter(market_data),
        on_chain=OnChainSignalAdapter(
            CoinGeckoOnChainProvider(client, settings.coingecko_base_url),
            cache=cache,
        ),
        sentiment=SentimentSignalAdapter(
            build_sentiment_providers(settings, client),
            cache=cache,
            provider_timeout=settings.http_timeout_seconds,
        ),
        analysts=analysts,
        owns_http_client=owns_client,
    )


def get_container(request: Request) -> SignalsContainer:
    """Return the container built in the application lifespan."""
    return request.app.state.signals


def get_consensus_use_case(
    container: SignalsContainer = Depends(get_container),
) -> GetConsensusAnalysisUseCase:
    """Build GetConsensusAnalysisUseCase with its infrastructure dependencies."""
    sources = []
    if container.settings.include_signal_context:
        sources = [container.technical, container.on_chain, container.sentiment]
    return GetConsensusAnalysisUseCase(
        analysts=container.analysts,
        cache=container.cache,
        signal_sources=sources,
        ttl_seconds=container.settings.consensus_ttl_seconds,
    )


def get_build_snapshot_use_case(
    container: SignalsContainer = Depends(get_container),
) -> BuildMarketSnapshotUseCase:
    """Build BuildMarketSnapshotUseCase with its infrastructure dependencies."""
    return BuildMarketSnapshotUseCase(market_data=container.market_data)


def get_market_signals_use_case(
    container: SignalsContainer = Depends(get_container),
) -> GetMarketSignalsUseCase:
    """Build GetMarketSignalsUseCase with its infrastructure dependencies."""
    return GetMarketSignalsUseCase(
        sources=[container.technical, container.on_chain, container.sentiment]
    )


def get_multi_timeframe_use_case(
    container: SignalsContainer = Depends(get_container),
) -> GetMultiTimeframeAnalysisUseCase:
    return GetMultiTimeframeAnalysisUseCase(trend_port=container.technical)


def get_on_chain_use_case(
    container: SignalsContainer = Depends(get_container),
) -> GetOnChainMetricsUseCase:
    return GetOnChainMetricsUseCase(on_chain_port=container.on_chain)


def get_sentiment_use_case(
    container: SignalsContainer = Depends(get_container),
) -> GetSentimentUseCase:
    return GetSentimentUseCase(sentiment_port=container.sentiment)
