"""
TTL Cache Service

Namespaced in-process cache with stale-while-revalidate refresh.

Callers hand ``get`` a key and an async producer. Fresh entries are
returned directly, stale entries are returned while a single background
refresh runs, and dead or missing entries are produced on the caller's
request path. Each namespace is bounded by its policy and evicts the
oldest stored entry first.
Invalidating or clearing a key voids any load or refresh already running
for it, so a result fetched before the invalidation is never stored.

All bookkeeping runs synchronously between awaits, so the maps need no
locking under the asyncio scheduler. The cache belongs to one process;
there is no cross-process invalidation.
"""

import asyncio
import functools
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple

import structlog
from opentelemetry import trace

from ...domain.cache.entities import CacheNamespace, NamespaceStats
from ...domain.cache.exceptions import (
    NamespaceAlreadyRegisteredError,
    NamespaceNotFoundError,
)
from ...domain.cache.value_objects import EntryState, NamespacePolicy

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

Producer = Callable[[], Awaitable[Any]]


class TTLCache:
    """
    Namespaced TTL cache with background revalidation.

    Args:
        clock: Monotonic time source in seconds
        deduplicate_misses: When True, concurrent cold misses for one key
            await a single producer call instead of each calling it
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        deduplicate_misses: bool = True,
    ):
        self._clock = clock
        self.deduplicate_misses = deduplicate_misses
        self._namespaces: Dict[str, CacheNamespace] = {}
        # "namespace:key" of every background refresh currently running
        self.refreshing: Set[str] = set()
        # Background refreshes and shared cold loads
        self._tasks: Set[asyncio.Task] = set()
        self._pending_loads: Dict[Tuple[str, str], asyncio.Task] = {}

    # Namespace registry

    def register_namespace(
        self, name: str, policy: NamespacePolicy
    ) -> CacheNamespace:
        """Register a namespace before any call references it."""
        if name in self._namespaces:
            raise NamespaceAlreadyRegisteredError(name)

        namespace = CacheNamespace(name=name, policy=policy)
        self._namespaces[name] = namespace
        logger.debug("Registered cache namespace", namespace=name, policy=str(policy))
        return namespace

    def has_namespace(self, name: str) -> bool:
        return name in self._namespaces

    def namespaces(self) -> List[str]:
        return list(self._namespaces)

    def policy(self, name: str) -> NamespacePolicy:
        return self._namespace(name).policy

    def _namespace(self, name: str) -> CacheNamespace:
        try:
            return self._namespaces[name]
        except KeyError:
            raise NamespaceNotFoundError(name) from None

    @staticmethod
    def _task_key(namespace: str, key: str) -> str:
        return f"{namespace}:{key}"

    @staticmethod
    def _check_key(key: str) -> None:
        if not isinstance(key, str) or not key:
            raise ValueError("Cache key must be a non-empty string")

    # Read path

    async def get(self, namespace: str, key: str, produce: Producer) -> Any:
        """
        Return the cached value for ``key``, producing it if necessary.

        Args:
            namespace: Registered namespace name
            key: Caller-normalised key
            produce: Zero-argument coroutine function computing the value.
                Absence should be returned as a value, not raised, so
                negative results are cached too.

        Returns:
            The fresh or stale cached value, or the newly produced one

        Raises:
            NamespaceNotFoundError: If the namespace is not registered
            Exception: Whatever ``produce`` raised on a cold miss
        """
        ns = self._namespace(namespace)
        self._check_key(key)

        with tracer.start_as_current_span("ttl_cache.get") as span:
            span.set_attribute("cache.namespace", namespace)

            entry = ns.lookup(key)
            if entry is not None:
                state = ns.state_of(entry, self._clock())

                if state is EntryState.FRESH:
                    entry.record_hit()
                    span.set_attribute("cache.result", "hit")
                    logger.debug(
                        "Cache hit", namespace=namespace, key=key, hits=entry.hit_count
                    )
                    return entry.value

                if state is EntryState.STALE:
                    entry.record_hit()
                    span.set_attribute("cache.result", "stale")
                    scheduled = self._schedule_refresh(ns, key, produce)
                    logger.debug(
                        "Serving stale cache entry",
                        namespace=namespace,
                        key=key,
                        refresh_scheduled=scheduled,
                    )
                    return entry.value

                ns.remove(key)

            logger.debug("Cache miss", namespace=namespace, key=key)
            return await self._load(ns, key, produce, span)

    async def _load(
        self, ns: CacheNamespace, key: str, produce: Producer, span: trace.Span
    ) -> Any:
        if not self.deduplicate_misses:
            span.set_attribute("cache.result", "miss")
            return await self._produce_and_store(ns, key, produce, ns.claim(key))

        load_key = (ns.name, key)
        task = self._pending_loads.get(load_key)
        if task is None:
            span.set_attribute("cache.result", "miss")
            task = asyncio.get_running_loop().create_task(
                self._produce_and_store(ns, key, produce, ns.claim(key))
            )
            self._pending_loads[load_key] = task
            task.add_done_callback(functools.partial(self._load_finished, load_key))
            self._track(task)
        else:
            span.set_attribute("cache.result", "joined")

        # The load runs in its own task, so a cancelled caller never cancels it
        return await asyncio.shield(task)

    async def _produce_and_store(
        self, ns: CacheNamespace, key: str, produce: Producer, ticket: object
    ) -> Any:
        try:
            value = await produce()
        except BaseException:
            ns.release(key, ticket)
            raise

        if not ns.store_claimed(key, value, self._clock(), ticket):
            logger.debug("Discarded load of invalidated entry", namespace=ns.name, key=key)
        return value

    def _load_finished(self, load_key: Tuple[str, str], task: asyncio.Task) -> None:
        if self._pending_loads.get(load_key) is task:
            del self._pending_loads[load_key]
        if not task.cancelled():
            # Marks a failure retrieved even when every caller went away
            task.exception()

    # Background refresh

    def _schedule_refresh(
        self, ns: CacheNamespace, key: str, produce: Producer
    ) -> bool:
        task_key = self._task_key(ns.name, key)
        if task_key in self.refreshing:
            return False

        self.refreshing.add(task_key)
        ticket = ns.claim(key)
        self._track(
            asyncio.get_running_loop().create_task(
                self._refresh(ns, key, produce, task_key, ticket)
            )
        )
        return True

    async def _refresh(
        self,
        ns: CacheNamespace,
        key: str,
        produce: Producer,
        task_key: str,
        ticket: object,
    ) -> None:
        try:
            value = await produce()
        except Exception as e:
            ns.release(key, ticket)
            # The stale value stays in place until it dies
            logger.warning(
                "Background cache refresh failed",
                namespace=ns.name,
                key=key,
                error=str(e),
                error_type=type(e).__name__,
            )
        else:
            if ns.store_claimed(key, value, self._clock(), ticket):
                logger.debug(
                    "Background cache refresh completed", namespace=ns.name, key=key
                )
            else:
                logger.debug(
                    "Discarded refresh of invalidated entry", namespace=ns.name, key=key
                )
        finally:
            self.refreshing.discard(task_key)

    def _track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait until every background refresh and shared load has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # Write path

    def set(self, namespace: str, key: str, value: Any) -> None:
        """Store ``value`` as a fresh entry, evicting the oldest if full."""
        ns = self._namespace(namespace)
        self._check_key(key)
        evicted = ns.store(key, value, self._clock())
        logger.debug(
            "Cache set", namespace=namespace, key=key, evicted=len(evicted)
        )

    def invalidate(self, namespace: str, key: str) -> bool:
        """Remove one entry. Returns False when there was nothing to remove."""
        removed = self._namespace(namespace).remove(key)
        # Later reads start a new load instead of joining the old one
        self._pending_loads.pop((namespace, key), None)
        if removed:
            logger.debug("Cache entry invalidated", namespace=namespace, key=key)
        return removed

    def clear(self, namespace: str) -> int:
        """Remove every entry of one namespace."""
        count = self._namespace(namespace).clear()
        for load_key in [k for k in self._pending_loads if k[0] == namespace]:
            del self._pending_loads[load_key]
        logger.info("Cache namespace cleared", namespace=namespace, removed=count)
        return count

    def sweep(self) -> int:
        """Delete dead entries in every namespace and return how many went."""
        with tracer.start_as_current_span("ttl_cache.sweep") as span:
            now = self._clock()
            removed = 0
            for ns in self._namespaces.values():
                removed += ns.purge_dead(now)
            span.set_attribute("cache.swept", removed)
            return removed

    # Observability

    def peek(self, namespace: str, key: str) -> Optional[EntryState]:
        """State of one entry without recording a hit, or None if absent."""
        ns = self._namespace(namespace)
        entry = ns.lookup(key)
        if entry is None:
            return None
        return ns.state_of(entry, self._clock())

    def stats(self, namespace: str) -> NamespaceStats:
        return self._namespace(namespace).stats(self._clock())

    def snapshot(self) -> Dict[str, Any]:
        """Statistics for every namespace plus refresh bookkeeping."""
        now = self._clock()
        namespaces = {
            name: ns.stats(now).to_dict() for name, ns in self._namespaces.items()
        }
        return {
            "namespaces": namespaces,
            "refreshes_in_flight": len(self.refreshing),
            "total_entries": sum(len(ns) for ns in self._namespaces.values()),
        }
