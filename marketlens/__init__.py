"""
MarketLens: market-signal aggregation service for crypto symbols.

Application package root. This is a modular monolith using
hexagonal architecture (ports & adapters) with domain-driven design.

Bounded contexts:
    - signals: Multi-timeframe trend, on-chain and sentiment signals,
      analyst opinions and their weighted consensus.

Layers:
    - domain: Pure business logic, entities, ports (ABCs), errors.
    - application: Use cases, DTOs, cache-aside orchestration.
    - infrastructure: Adapters (exchange, on-chain, sentiment, LLM, cache).
    - interfaces: FastAPI routers, Pydantic schemas.
    - shared: Cross-cutting concerns (errors, security, logging).
"""
