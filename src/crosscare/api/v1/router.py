"""
API v1 Router

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter

from crosscare.api.v1.endpoints.health import router as health_router
from crosscare.api.v1.endpoints.queue import router as queue_router
from crosscare.api.v1.endpoints.responses import router as responses_router
from crosscare.infrastructure.metrics import metrics_router

api_router = APIRouter()

api_router.include_router(
    health_router,
    prefix="/health",
    tags=["Health"],
)

api_router.include_router(
    queue_router,
    prefix="/queue",
    tags=["Queue"],
)

api_router.include_router(
    responses_router,
    prefix="/responses",
    tags=["Responses"],
)

api_router.include_router(metrics_router)
