"""
Cache key patterns and TTLs for the signals context.

Keys bucket volatile inputs so that near-identical requests share an
entry. TTLs are in seconds.
"""

import math

# Consensus results are bucketed by price in geometric 1% steps
PRICE_BUCKET_PCT = 1.0


class CacheTTL:
    """Cache TTL constants (seconds)."""

    VERY_SHORT = 30  # tick-level prices
    SHORT = 300  # candles
    MEDIUM = 900  # on-chain metrics
    LONG = 3_600  # sentiment
    VERY_LONG = 86_400  # analyst consensus


def price_bucket(price: float, pct: float = PRICE_BUCKET_PCT) -> int:
    """Return the geometric bucket index of a price.

    Prices within roughly ``pct`` percent of each other share a bucket.
    Non-positive prices fall into bucket 0.
    """
    if price <= 0 or not math.isfinite(price):
        return 0
    return math.floor(math.log(price) / math.log(1 + pct / 100))


def binance_price(symbol: str) -> str:
    return f"binance:price:{symbol}"


def binance_ticker(symbol: str) -> str:
    return f"binance:ticker:{symbol}"


def binance_klines(symbol: str, interval: str, limit: int) -> str:
    return f"binance:klines:{symbol}:{interval}:{limit}"


def on_chain(symbol: str) -> str:
    return f"onchain:{symbol}"


def sentiment(symbol: str) -> str:
    return f"sentiment:{symbol}"


def consensus(symbol: str, price: float) -> str:
    return f"consensus:{symbol.upper()}:{price_bucket(price)}"
