"""
Application entry point.

Creates the FastAPI application and wires together:
- Routers (health, signals)
- Error handlers (centralized domain-to-HTTP mapping)
- Security middleware (headers, rate limiting)
- Logging configuration
- Shared resources (HTTP client, cache store) owned by the lifespan

No business logic belongs here.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded

from marketlens.core.config import settings
from marketlens.interfaces.health import router as health_router
from marketlens.interfaces.signals.dependencies import build_container
from marketlens.interfaces.signals.router import router as signals_router
from marketlens.shared.errors.handlers import register_error_handlers
from marketlens.shared.logging import configure_logging
from marketlens.shared.security.headers import SecurityHeadersMiddleware
from marketlens.shared.security.rate_limiting import (
    limiter,
    rate_limit_exceeded_handler,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: build and release the signals adapters."""
    container = build_container(settings)
    app.state.signals = container
    logger.info(
        "%s %s started (cache backend: %s)",
        settings.project_name,
        settings.version,
        settings.effective_cache_backend(),
    )

    yield

    await container.aclose()
    logger.info("%s stopped", settings.project_name)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Registers routers, error handlers, and security middleware.
    This is the composition root of the application.

    Returns:
        A fully configured FastAPI application instance.
    """
    configure_logging(level=settings.log_level)

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # --- Rate Limiting ---
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # --- Security Middleware ---
    app.add_middleware(SecurityHeadersMiddleware)

    # --- Error Handlers ---
    register_error_handlers(app)

    # --- Routers ---
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(signals_router, prefix="/api/v1")

    return app


app = create_app()
