"""Health check endpoints."""

import logging

from fastapi import APIRouter, Request

from src.api.health.models import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

API_VERSION = "1.0.0"


@router.get(
    "",
    response_model=HealthResponse,
    summary="Check service health",
    description="Returns the health status of the API service and the registry size.",
)
def health_check(request: Request) -> HealthResponse:
    """Check if the API service is healthy.

    :returns: Health status response.
    """
    logger.debug("Health check requested")
    registry = getattr(request.app.state, "registry", None)
    return HealthResponse(
        status="healthy",
        version=API_VERSION,
        registered_databases=len(registry.list_all()) if registry is not None else 0,
    )
