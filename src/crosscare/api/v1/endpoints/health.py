"""
Health Check Endpoints

System health and readiness endpoints for load balancers, Kubernetes
probes and monitoring.
"""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from crosscare import __version__
from crosscare.config import get_settings
from crosscare.infrastructure.database import get_db_manager

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    environment: str


class ReadinessResponse(BaseModel):
    """Readiness check response with component health."""

    ready: bool
    components: dict


@router.get(
    "",
    response_model=HealthResponse,
    summary="Health check",
    description="Basic health check endpoint for load balancers",
)
async def health_check() -> HealthResponse:
    """Returns 200 if the application is running."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=get_settings().env,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Detailed readiness check including all components",
)
async def readiness_check(request: Request) -> ReadinessResponse:
    """
    Detailed readiness check.

    Ready when the database answers. Analysis availability is reported
    but not required: without it responses are stored unscored.
    """
    components: dict[str, bool] = {}

    try:
        components["database"] = await get_db_manager().health_check()
    except Exception:
        components["database"] = False

    services = getattr(request.app.state, "services", None)
    components["analysis"] = bool(services and services.analysis_runner is not None)
    components["maintenance"] = bool(services and services.maintenance.is_running)

    return ReadinessResponse(
        ready=components["database"],
        components=components,
    )


@router.get(
    "/live",
    response_model=HealthResponse,
    summary="Liveness probe",
    description="Kubernetes liveness probe endpoint",
)
async def liveness_check() -> HealthResponse:
    """Returns 200 if the application process is alive."""
    return HealthResponse(
        status="alive",
        version=__version__,
        environment=get_settings().env,
    )
