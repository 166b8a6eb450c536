"""
Cache Monitoring API Endpoints

Administrative diagnostics for the in-process cache: statistics,
targeted invalidation and manual sweeps. Reading statistics never
changes cache state. Unknown namespaces surface as 404 through the
application's cache exception handler.
"""

from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel, Field

import structlog

from ...services.cache.ttl_cache import TTLCache
from ..dependencies import get_cache

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/monitoring/cache", tags=["cache-monitoring"])


class NamespaceStatsResponse(BaseModel):
    """Statistics for one namespace."""

    namespace: str
    entries: int
    max_entries: int
    capacity_utilization_percent: float
    total_hits: int
    stale_count: int
    dead_count: int


class CacheSnapshotResponse(BaseModel):
    """Statistics for every namespace."""

    timestamp: str
    namespaces: Dict[str, NamespaceStatsResponse]
    refreshes_in_flight: int
    total_entries: int


class CacheOperationResponse(BaseModel):
    """Result of a mutating diagnostics operation."""

    operation: str
    namespace: str = Field("*", description="Affected namespace, '*' for all")
    removed: int = Field(..., ge=0, description="Number of entries removed")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("", response_model=CacheSnapshotResponse)
async def get_cache_snapshot(cache: TTLCache = Depends(get_cache)):
    """Get statistics for all cache namespaces."""
    snapshot = cache.snapshot()
    return CacheSnapshotResponse(timestamp=_now(), **snapshot)


@router.post("/sweep", response_model=CacheOperationResponse)
async def sweep_cache(cache: TTLCache = Depends(get_cache)):
    """Delete dead entries across all namespaces now."""
    removed = cache.sweep()
    logger.info("Manual cache sweep", removed=removed)
    return CacheOperationResponse(operation="sweep", removed=removed)


@router.get("/{namespace}", response_model=NamespaceStatsResponse)
async def get_namespace_stats(
    namespace: str = Path(..., description="Cache namespace"),
    cache: TTLCache = Depends(get_cache),
):
    """Get statistics for one namespace."""
    return NamespaceStatsResponse(**cache.stats(namespace).to_dict())


@router.post("/{namespace}/clear", response_model=CacheOperationResponse)
async def clear_namespace(
    namespace: str = Path(..., description="Cache namespace"),
    cache: TTLCache = Depends(get_cache),
):
    """Remove every entry of one namespace."""
    removed = cache.clear(namespace)
    return CacheOperationResponse(operation="clear", namespace=namespace, removed=removed)


@router.delete("/{namespace}/{key}", response_model=CacheOperationResponse)
async def invalidate_key(
    namespace: str = Path(..., description="Cache namespace"),
    key: str = Path(..., description="Cache key"),
    cache: TTLCache = Depends(get_cache),
):
    """Remove one entry; removing an absent key is not an error."""
    removed = cache.invalidate(namespace, key)
    logger.info("Cache key invalidated via API", namespace=namespace, key=key, removed=removed)
    return CacheOperationResponse(
        operation="invalidate", namespace=namespace, removed=int(removed)
    )
