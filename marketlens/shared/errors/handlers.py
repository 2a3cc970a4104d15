"""
Centralized error handlers for FastAPI.

Maps domain-specific errors to HTTP responses.
No stack traces or internal details are exposed to clients.
All error responses use the ErrorResponse schema.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from marketlens.domain.signals.errors import (
    ConsensusInputError,
    InvalidSymbolError,
    MarketDataUnavailableError,
    SignalDomainError,
)

logger = logging.getLogger(__name__)

HTTP_422 = 422
HTTP_500 = 500
HTTP_503 = 503


def _error_response(status_code: int, error: str, detail: str | None = None) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: dict[str, str | None] = {"error": error}
    if detail:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    """Register all domain error handlers on the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(InvalidSymbolError)
    async def handle_invalid_symbol(
        _request: Request, exc: InvalidSymbolError
    ) -> JSONResponse:
        """Handle malformed symbol errors."""
        logger.warning("Invalid symbol: %s", exc.symbol)
        return _error_response(
            HTTP_422, "Invalid symbol", "Symbols are 2-20 uppercase letters or digits"
        )

    @app.exception_handler(MarketDataUnavailableError)
    async def handle_market_data_unavailable(
        _request: Request, exc: MarketDataUnavailableError
    ) -> JSONResponse:
        """Handle exchange outages for the requested symbol."""
        logger.warning("Market data unavailable: %s (%s)", exc.symbol, exc.reason)
        return _error_response(
            HTTP_503, "Market data unavailable", f"No market data for {exc.symbol}"
        )

    @app.exception_handler(ConsensusInputError)
    async def handle_consensus_input(
        _request: Request, exc: ConsensusInputError
    ) -> JSONResponse:
        """Handle contract violations reaching the consensus engine."""
        logger.error("Consensus input error: %s", exc.reason)
        return _error_response(HTTP_500, "Consensus computation failed")

    @app.exception_handler(SignalDomainError)
    async def handle_signal_domain(
        _request: Request, exc: SignalDomainError
    ) -> JSONResponse:
        """Catch-all for unhandled signals domain errors."""
        logger.error("Unhandled signals domain error: %s", exc.message)
        return _error_response(HTTP_500, "Internal server error")

    @app.exception_handler(Exception)
    async def handle_unexpected(
        _request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all for unexpected errors. Never exposes internals."""
        logger.exception("Unexpected error: %s", type(exc).__name__)
        return _error_response(HTTP_500, "Internal server error")
