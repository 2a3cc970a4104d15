"""
Signals bounded context: domain layer.

This module contains all domain logic for the signals context:
- Market snapshots and technical indicators
- Multi-timeframe trend voting
- Normalized signal scores
- Analyst opinions and their weighted consensus
"""
