"""
Health check router.

Provides a simple health endpoint for liveness/readiness probes.
No business logic. Returns application status, version, cache state
and the cache-aside counters.
"""

from fastapi import APIRouter, Request

from marketlens.core.config import settings
from marketlens.interfaces.signals.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns application health status, version and cache backend state.",
)
async def health_check(request: Request) -> HealthResponse:
    """Return current application health status.

    The service stays healthy when the cache store is down: the cache
    is reported as degraded instead. The store counts as degraded when
    it does not answer a ping or when its last operation failed.
    """
    backend = settings.effective_cache_backend()
    cache_state = backend
    cache_stats = None
    container = getattr(request.app.state, "signals", None)
    if container is not None:
        cache_stats = container.cache.stats.to_dict()
        if backend != "none":
            reachable = await container.cache_store.ping()
            if not reachable or container.cache.degraded:
                cache_state = f"{backend} (degraded)"
    return HealthResponse(
        status="ok",
        version=settings.version,
        cache=cache_state,
        cache_stats=cache_stats,
    )
