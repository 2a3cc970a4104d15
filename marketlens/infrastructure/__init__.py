"""
Infrastructure layer package.

Contains concrete implementations (adapters) of the ports
defined in the domain layer. This is where the exchange, on-chain,
sentiment and LLM APIs and the cache store live.
"""
