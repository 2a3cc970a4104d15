"""
Symbol to coin identifier mapping shared by the data-provider adapters.
"""

QUOTE_ASSETS = ("USDT", "BUSD", "USDC")

# base asset -> (CoinGecko id, display name)
KNOWN_COINS: dict[str, tuple[str, str]] = {
    "BTC": ("bitcoin", "Bitcoin"),
    "ETH": ("ethereum", "Ethereum"),
    "BNB": ("binancecoin", "Binance Coin"),
    "SOL": ("solana", "Solana"),
    "XRP": ("ripple", "Ripple"),
    "ADA": ("cardano", "Cardano"),
    "DOGE": ("dogecoin", "Dogecoin"),
    "MATIC": ("matic-network", "Polygon"),
    "DOT": ("polkadot", "Polkadot"),
    "AVAX": ("avalanche-2", "Avalanche"),
    "LINK": ("chainlink", "Chainlink"),
    "LTC": ("litecoin", "Litecoin"),
    "BCH": ("bitcoin-cash", "Bitcoin Cash"),
    "XLM": ("stellar", "Stellar"),
    "ATOM": ("cosmos", "Cosmos"),
}


def base_asset(symbol: str) -> str:
    """Strip the quote asset from a trading pair (BTCUSDT -> BTC)."""
    symbol = symbol.upper()
    for quote in QUOTE_ASSETS:
        if symbol.endswith(quote) and len(symbol) > len(quote):
            return symbol[: -len(quote)]
    return symbol


def coingecko_id(symbol: str) -> str:
    base = base_asset(symbol)
    known = KNOWN_COINS.get(base)
    return known[0] if known else base.lower()


def coin_name(symbol: str) -> str:
    base = base_asset(symbol)
    known = KNOWN_COINS.get(base)
    return known[1] if known else base
