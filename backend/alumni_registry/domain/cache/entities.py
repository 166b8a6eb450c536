"""
Cache Domain Entities

Core entities for in-process caching: a single entry and the namespace
that owns a bounded set of entries under one policy.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

import structlog

from .value_objects import EntryState, NamespacePolicy

logger = structlog.get_logger(__name__)


@dataclass
class CacheEntry:
    """
    Cached payload with its timing metadata.

    The value is opaque to the cache and never copied or mutated.
    ``hit_count`` is observability only; eviction ignores it.
    """

    value: Any
    stored_at: float
    expires_at: float
    hit_count: int = 0

    @classmethod
    def create(cls, value: Any, now: float, ttl_seconds: float) -> "CacheEntry":
        """Create a fresh entry stored at ``now``."""
        return cls(value=value, stored_at=now, expires_at=now + ttl_seconds)

    def state(self, now: float, stale_window_seconds: float) -> EntryState:
        """Classify the entry at instant ``now``."""
        if now < self.expires_at:
            return EntryState.FRESH
        if now < self.expires_at + stale_window_seconds:
            return EntryState.STALE
        return EntryState.DEAD

    def record_hit(self) -> None:
        self.hit_count += 1


@dataclass(frozen=True)
class NamespaceStats:
    """Read-only statistics snapshot for one namespace."""

    namespace: str
    entries: int
    max_entries: int
    capacity_utilization_percent: float
    total_hits: int
    stale_count: int
    dead_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "namespace": self.namespace,
            "entries": self.entries,
            "max_entries": self.max_entries,
            "capacity_utilization_percent": self.capacity_utilization_percent,
            "total_hits": self.total_hits,
            "stale_count": self.stale_count,
            "dead_count": self.dead_count,
        }


@dataclass
class CacheNamespace:
    """
    Logical cache partition.

    Holds at most ``policy.max_entries`` entries. The mapping keeps keys in
    storage order, so the first key is always the oldest ``stored_at``.

    Loads and refreshes that finish after the key was removed must not
    write it back. They take a ticket with ``claim`` before producing and
    store through ``store_claimed``; ``remove`` and ``clear`` void every
    outstanding ticket for the keys they drop.
    """

    name: str
    policy: NamespacePolicy
    _entries: Dict[str, CacheEntry] = field(default_factory=dict, repr=False)
    _tickets: Dict[str, Set[object]] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Namespace name cannot be empty")

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def keys(self) -> Iterator[str]:
        return iter(list(self._entries))

    def lookup(self, key: str) -> Optional[CacheEntry]:
        """Return the entry for ``key`` whatever its state, or None."""
        return self._entries.get(key)

    def state_of(self, entry: CacheEntry, now: float) -> EntryState:
        return entry.state(now, self.policy.stale_window_seconds)

    def store(self, key: str, value: Any, now: float) -> List[str]:
        """
        Store ``value`` as a fresh entry.

        Re-storing an existing key replaces it in place without evicting
        anything else. Storing a new key into a full namespace evicts the
        oldest entries first.

        Returns:
            Keys evicted to make room
        """
        evicted: List[str] = []
        if key in self._entries:
            # Moves the key to the newest position
            del self._entries[key]
        else:
            while len(self._entries) >= self.policy.max_entries:
                oldest_key = next(iter(self._entries))
                del self._entries[oldest_key]
                evicted.append(oldest_key)
                logger.debug(
                    "Evicted oldest cache entry",
                    namespace=self.name,
                    key=oldest_key,
                )

        self._entries[key] = CacheEntry.create(value, now, self.policy.ttl_seconds)
        return evicted

    def claim(self, key: str) -> object:
        """Take a write ticket for a pending load of ``key``."""
        ticket = object()
        self._tickets.setdefault(key, set()).add(ticket)
        return ticket

    def release(self, key: str, ticket: object) -> bool:
        """Give a ticket back. Returns False if it was voided meanwhile."""
        tickets = self._tickets.get(key)
        if not tickets or ticket not in tickets:
            return False
        tickets.discard(ticket)
        if not tickets:
            del self._tickets[key]
        return True

    def store_claimed(self, key: str, value: Any, now: float, ticket: object) -> bool:
        """Store ``value`` only if ``ticket`` is still valid."""
        if not self.release(key, ticket):
            return False
        self.store(key, value, now)
        return True

    def remove(self, key: str) -> bool:
        """Remove one entry. Returns False if the key was absent."""
        self._tickets.pop(key, None)
        return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        """Remove every entry and return how many were held."""
        count = len(self._entries)
        self._entries.clear()
        self._tickets.clear()
        return count

    def purge_dead(self, now: float) -> int:
        """Delete entries past their stale window."""
        dead = [
            key
            for key, entry in self._entries.items()
            if self.state_of(entry, now) is EntryState.DEAD
        ]
        for key in dead:
            del self._entries[key]
        return len(dead)

    def items(self) -> Iterator[Tuple[str, CacheEntry]]:
        return iter(list(self._entries.items()))

    def stats(self, now: float) -> NamespaceStats:
        """Compute a statistics snapshot without touching any entry."""
        stale = dead = hits = 0
        for entry in self._entries.values():
            hits += entry.hit_count
            state = self.state_of(entry, now)
            if state is EntryState.STALE:
                stale += 1
            elif state is EntryState.DEAD:
                dead += 1

        size = len(self._entries)
        return NamespaceStats(
            namespace=self.name,
            entries=size,
            max_entries=self.policy.max_entries,
            capacity_utilization_percent=round(
                size / self.policy.max_entries * 100, 2
            ),
            total_hits=hits,
            stale_count=stale,
            dead_count=dead,
        )
