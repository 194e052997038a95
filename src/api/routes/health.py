"""
Health check endpoint with infrastructure and provider checks.
"""

import time

import structlog
from fastapi import APIRouter, Depends

from src.api.dependencies import get_database, get_matching_service, get_redis_client
from src.api.models import ComponentHealth, HealthResponse
from src.matching.service import MatchingService

router = APIRouter()
logger = structlog.get_logger(__name__)


async def _check_database() -> ComponentHealth:
    """Check database connectivity and the pgvector extension."""
    start = time.perf_counter()
    try:
        db = await get_database()
        details = await db.check()
        latency_ms = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            status="healthy" if details.get("pgvector") else "unhealthy",
            latency_ms=round(latency_ms, 2),
            details=details,
        )
    except Exception as e:
        latency_ms = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            status="unhealthy",
            latency_ms=round(latency_ms, 2),
            details={"error": str(e)},
        )


async def _check_redis() -> ComponentHealth:
    """Check Redis connectivity and measure latency."""
    redis_client = get_redis_client()
    if redis_client is None:
        return ComponentHealth(status="disabled")

    start = time.perf_counter()
    try:
        await redis_client.ping()
        latency_ms = (time.perf_counter() - start) * 1000
        return ComponentHealth(status="healthy", latency_ms=round(latency_ms, 2))
    except Exception as e:
        latency_ms = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            status="unhealthy",
            latency_ms=round(latency_ms, 2),
            details={"error": str(e)},
        )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Check the health of the service and its dependencies.",
)
async def health_check(
    service: MatchingService = Depends(get_matching_service),
) -> HealthResponse:
    """
    Check service health including database, Redis and AI providers.

    Status logic:
    - unhealthy: database is down or lacks the pgvector extension
    - degraded: no AI provider, or Redis enabled but down
    - healthy: all components operational
    """
    stats = service.get_stats()
    chat_provider = service.llm_client.provider
    embedding_provider = stats["embedding"]["provider"]

    components = {
        "database": await _check_database(),
        "redis": await _check_redis(),
        "chat": ComponentHealth(
            status="healthy" if chat_provider else "unconfigured",
            details={"circuit": service.llm_client.breaker.state.value},
        ),
        "embedding": ComponentHealth(status="healthy" if embedding_provider else "unconfigured"),
    }

    if components["database"].status == "unhealthy":
        overall = "unhealthy"
    elif (
        components["redis"].status == "unhealthy"
        or chat_provider is None
        or embedding_provider is None
    ):
        overall = "degraded"
    else:
        overall = "healthy"

    return HealthResponse(
        status=overall,
        chat_provider=chat_provider,
        embedding_provider=embedding_provider,
        components=components,
        service_stats=stats,
    )
