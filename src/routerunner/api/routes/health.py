"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings
from ...services.routing.osrm_client import check_health as osrm_health_check

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok", "version": settings.app_version}


@router.get("/health/osrm", status_code=status.HTTP_200_OK)
async def health_osrm() -> dict:
    """Check OSRM service health. Unconfigured OSRM reports unhealthy, legs are then estimated."""
    if not settings.osrm_base_url:
        return {"service": "osrm", "configured": False, "healthy": False}
    try:
        healthy = await osrm_health_check()
        return {"service": "osrm", "configured": True, "healthy": healthy}
    except Exception as e:
        return {"service": "osrm", "configured": True, "healthy": False, "error": str(e)}
