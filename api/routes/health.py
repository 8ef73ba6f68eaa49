"""
Health Check Routes
===================

Kubernetes-compatible health and readiness endpoints.
"""

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Request

from api import __version__
from api.schemas import HealthResponse, HealthStatus, ReadinessResponse

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Health"])


def _inventory_reachable(request: Request) -> bool:
    executor = getattr(request.app.state, "executor", None)
    if executor is None:
        return False
    try:
        executor.is_empty()
    except Exception as e:
        logger.warning("inventory_unreachable", error=str(e))
        return False
    return True


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns the health status of the service",
)
async def health_check(request: Request) -> HealthResponse:
    """
    Health check endpoint for load balancers and monitoring.

    The service is degraded when the pipeline is missing or the inventory
    table cannot be queried.
    """
    checks = {
        "api": True,
        "pipeline": getattr(request.app.state, "pipeline", None) is not None,
        "inventory": _inventory_reachable(request),
    }

    status = HealthStatus.HEALTHY if all(checks.values()) else HealthStatus.DEGRADED

    return HealthResponse(
        status=status,
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Returns whether the service is ready to handle requests",
)
async def readiness_check(request: Request) -> ReadinessResponse:
    """Ready once the lifespan has built the pipeline and the conversation store."""
    state = request.app.state
    checks = {
        "pipeline_loaded": getattr(state, "pipeline", None) is not None,
        "conversation_store_loaded": getattr(state, "conversations", None) is not None,
    }

    return ReadinessResponse(ready=all(checks.values()), checks=checks)


@router.get("/live", summary="Liveness check")
async def liveness_check() -> dict:
    return {"status": "ok"}
