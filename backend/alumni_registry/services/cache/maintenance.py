"""
Cache Maintenance

Periodic sweep that deletes dead entries so namespaces do not hold
expired values until the next eviction.
"""

import asyncio
from typing import Optional

import structlog

from .ttl_cache import TTLCache

logger = structlog.get_logger(__name__)


class CacheSweeper:
    """Background loop calling ``TTLCache.sweep`` on a fixed interval."""

    def __init__(self, cache: TTLCache, interval_seconds: float = 300):
        if interval_seconds <= 0:
            raise ValueError("Sweep interval must be positive")
        self.cache = cache
        self.interval_seconds = interval_seconds
        self._sweep_task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    def run_once(self) -> int:
        """Sweep immediately and return the number of entries removed."""
        removed = self.cache.sweep()
        if removed:
            logger.info("Cleaned up expired cache entries", removed=removed)
        return removed

    async def start(self) -> None:
        """Start background sweeping."""
        if self._sweep_task is None:
            self._sweep_task = asyncio.create_task(self._sweep_loop())
            logger.info(
                "Cache sweeper started", interval_seconds=self.interval_seconds
            )

    async def stop(self) -> None:
        """Stop background sweeping."""
        if self._sweep_task:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None
            logger.info("Cache sweeper stopped")

    async def _sweep_loop(self) -> None:
        while True:
            try:
                await asyncio.sleep(self.interval_seconds)
                self.run_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Cache sweep error", error=str(e))
