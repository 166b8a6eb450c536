"""
Health check endpoints for the Alumni Registry API.
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ...core.config import Settings
from ...services.cache.maintenance import CacheSweeper
from ..dependencies import get_app_settings, get_sweeper

# Track process start time for uptime calculation
PROCESS_START_TIME = time.time()

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check(
    settings: Settings = Depends(get_app_settings),
    sweeper: CacheSweeper = Depends(get_sweeper),
) -> Dict[str, Any]:
    """
    Basic health check endpoint.

    Returns a simple health status for load balancers and monitoring systems.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": settings.OTEL_SERVICE_NAME,
        "environment": settings.ENVIRONMENT,
        "uptime_seconds": round(time.time() - PROCESS_START_TIME, 3),
        "cache_sweeper_running": sweeper.running,
    }
