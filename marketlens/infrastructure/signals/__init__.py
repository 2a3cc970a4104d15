"""
Signals bounded context: infrastructure adapters.

Implements the domain ports against Binance, CoinGecko, sentiment
providers and LLM backends.
"""
