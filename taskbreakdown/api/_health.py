"""Service banner and health check."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter

from taskbreakdown.api._deps import ServicesDep  # noqa: TC001 - FastAPI resolves at runtime
from taskbreakdown.constants import SERVICE_VERSION

router = APIRouter(tags=["health"])
root_router = APIRouter()


@router.get("/health")
async def health(services: ServicesDep) -> dict[str, str]:
    """Liveness probe for monitoring."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": services.settings.log_service,
    }


@root_router.get("/")
async def banner() -> dict[str, str]:
    return {"message": "Task Breakdown API", "version": SERVICE_VERSION, "status": "running"}
