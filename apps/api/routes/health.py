"""Health check endpoint. No auth required."""

import os
from datetime import datetime, timezone

from fastapi import APIRouter

from apps.api.schemas.health import HealthResponse
from apps.api.services.registry import RegistryDep

router = APIRouter()

SERVICE_NAME = "sitebuilder-core"


@router.get("/health", response_model=HealthResponse)
async def health(registry: RegistryDep) -> HealthResponse:
    """Health check. Returns ok, version (GIT_SHA or dev), current time (ISO) and registered block count."""
    version = os.getenv("GIT_SHA", "dev").strip() or "dev"
    return HealthResponse(
        ok=True,
        service=SERVICE_NAME,
        version=version,
        time=datetime.now(timezone.utc).isoformat(),
        block_types=len(registry),
    )
