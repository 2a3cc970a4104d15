"""
Application configuration.

Loads settings from environment variables and .env file.
All configuration is centralized here: no scattered magic strings.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment.

    Attributes:
        project_name: Display name for the API.
        version: Current API version string.
        debug: Enable debug mode. Must be False in production.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        rate_limit_default: Default rate limit for all endpoints.
        rate_limit_heavy: Rate limit for the LLM-backed consensus endpoints.
        redis_url: Redis connection URL. When unset the cache is disabled.
        cache_backend: One of "redis", "memory" or "none".

    Upstream endpoints, timeouts, analyst models and consensus weights
    are grouped below. Credentials are optional: a missing key only
    disables the component that needs it.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    project_name: str = "MarketLens"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    rate_limit_default: str = "60/minute"
    rate_limit_heavy: str = "10/minute"

    # --- Cache ---
    redis_url: Optional[str] = None
    cache_backend: str = "redis"
    consensus_ttl_seconds: int = 86_400

    # --- Upstream data sources ---
    binance_base_url: str = "https://api.binance.com"
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    fear_greed_url: Optional[str] = "https://api.alternative.me/fng/?limit=1"
    # name -> {"url": "https://.../{coin}", "score_path": "data.sentiment"}
    sentiment_endpoints: dict[str, dict[str, str]] = {}
    http_timeout_seconds: float = 10.0

    # --- Analysts ---
    technical_model: str = "openrouter/qwen/qwen-2.5-72b-instruct"
    risk_model: str = "openrouter/deepseek/deepseek-chat"
    llm_api_key: Optional[str] = None
    llm_api_base: Optional[str] = None
    llm_temperature: float = 0.3
    llm_max_tokens: int = 800
    analyst_timeout_seconds: float = 30.0
    include_signal_context: bool = True

    # --- Consensus weights (relative trust, need not sum to 1) ---
    technical_weight: float = 0.40
    risk_weight: float = 0.35

    def effective_cache_backend(self) -> str:
        """Return the cache backend that will actually be used.

        "redis" without a URL degrades to "none": the cache is an
        optimization, never a dependency.
        """
        backend = self.cache_backend.lower()
        if backend == "redis" and not self.redis_url:
            return "none"
        return backend


settings = Settings()
