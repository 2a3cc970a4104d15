"""
Domain-specific errors for the signals bounded context.

All errors raised from the domain layer must be defined here.
These are mapped to HTTP responses at the interface layer.
No framework imports allowed.
"""


class SignalDomainError(Exception):
    """Base error for all signals domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class InvalidSymbolError(SignalDomainError):
    """Raised when a symbol does not look like an exchange ticker."""

    def __init__(self, symbol: str) -> None:
        super().__init__(f"Invalid symbol: {symbol}")
        self.symbol = symbol


class MarketDataUnavailableError(SignalDomainError):
    """Raised when the exchange cannot provide data for a symbol."""

    def __init__(self, symbol: str, reason: str) -> None:
        super().__init__(f"Market data unavailable for {symbol}: {reason}")
        self.symbol = symbol
        self.reason = reason


class ConsensusInputError(SignalDomainError):
    """Raised when the consensus engine receives input outside its contract.

    This is a programming error upstream (an adapter leaked an invalid
    value); it is surfaced, never swallowed.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid consensus input: {reason}")
        self.reason = reason


class AnalystResponseError(Exception):
    """Raised inside an analyst adapter when the backend call fails.

    Never escapes the adapter: it is converted into the fallback opinion.
    """

    def __init__(self, persona: str, reason: str) -> None:
        super().__init__(f"[{persona}] {reason}")
        self.persona = persona
        self.reason = reason
