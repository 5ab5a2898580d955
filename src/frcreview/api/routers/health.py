"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from frcreview.api.routers import reviews
from frcreview.api.schemas import HealthResponse

router = APIRouter(tags=["Health"])

VERSION = "0.1.0"


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check — confirms the service is running."""
    return HealthResponse(status="healthy", version=VERSION, services={"api": "running"})


@router.get("/readiness", response_model=HealthResponse)
async def readiness_check() -> HealthResponse:
    """Readiness check — reports whether the review pipeline has its services."""
    ready = reviews.is_configured()
    return HealthResponse(
        status="ready" if ready else "not_configured",
        version=VERSION,
        services={
            "api": "ready",
            "pipeline": "ready" if ready else "not_configured",
        },
    )
