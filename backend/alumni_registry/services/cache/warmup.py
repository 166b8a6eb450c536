"""
Cache Warm-up

Preloads critical reference data (user accounts, headline dashboard
counts, faculties and departments) so the first requests after startup
hit a warm cache.
"""

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import structlog

from .ttl_cache import Producer, TTLCache

logger = structlog.get_logger(__name__)


@dataclass
class WarmupReport:
    """Outcome of one warm-up run."""

    loaded: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed


class CacheWarmer:
    """
    Runs registered loaders and stores their results.

    A failing loader is logged and reported; it never aborts the others.
    """

    def __init__(self, cache: TTLCache, interval_seconds: float = 0):
        self.cache = cache
        self.interval_seconds = interval_seconds
        self._loaders: List[Tuple[str, str, Producer]] = []
        self._warmup_task: Optional[asyncio.Task] = None

    def register(self, namespace: str, key: str, produce: Producer) -> None:
        """Add a loader. The namespace must already exist."""
        # Fails fast with NamespaceNotFoundError
        self.cache.policy(namespace)
        self._loaders.append((namespace, key, produce))

    @property
    def loaders(self) -> int:
        return len(self._loaders)

    async def warm(self) -> WarmupReport:
        """Run every loader concurrently."""
        report = WarmupReport()
        if not self._loaders:
            return report

        results = await asyncio.gather(
            *(produce() for _, _, produce in self._loaders), return_exceptions=True
        )
        for (namespace, key, _), result in zip(self._loaders, results):
            label = f"{namespace}:{key}"
            if isinstance(result, BaseException):
                report.failed.append(label)
                logger.warning(
                    "Cache preload failed",
                    namespace=namespace,
                    key=key,
                    error=str(result),
                    error_type=type(result).__name__,
                )
                continue
            self.cache.set(namespace, key, result)
            report.loaded.append(label)

        logger.info(
            "Critical data preloaded",
            loaded=len(report.loaded),
            failed=len(report.failed),
        )
        return report

    async def start(self) -> None:
        """Warm once now, then again every ``interval_seconds`` if set."""
        await self.warm()
        if self.interval_seconds > 0 and self._warmup_task is None:
            self._warmup_task = asyncio.create_task(self._warmup_loop())

    async def stop(self) -> None:
        if self._warmup_task:
            self._warmup_task.cancel()
            try:
                await self._warmup_task
            except asyncio.CancelledError:
                pass
            self._warmup_task = None

    async def _warmup_loop(self) -> None:
        while True:
            try:
                await asyncio.sleep(self.interval_seconds)
                await self.warm()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Cache warm-up error", error=str(e))
