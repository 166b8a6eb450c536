"""
Cache Value Objects

Immutable value objects for the cache domain.
Namespace policies, entry states and the key conventions used by callers.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union


class EntryState(str, Enum):
    """Lifecycle state of a cache entry at a given instant."""

    FRESH = "fresh"
    STALE = "stale"
    DEAD = "dead"


@dataclass(frozen=True)
class NamespacePolicy:
    """
    Expiry and sizing policy for one cache namespace.

    An entry is fresh for ``ttl_seconds`` after it is stored, then stale
    for ``stale_window_seconds`` more, then dead.
    """

    ttl_seconds: float
    max_entries: int
    stale_window_seconds: float = 0

    def __post_init__(self) -> None:
        """Validate policy values."""
        if self.ttl_seconds <= 0:
            raise ValueError("TTL must be positive")
        if self.stale_window_seconds < 0:
            raise ValueError("Stale window cannot be negative")
        if self.max_entries < 1:
            raise ValueError("Namespace must allow at least one entry")

    @classmethod
    def minutes(
        cls, ttl: float, max_entries: int, stale_window: float = 0
    ) -> "NamespacePolicy":
        """Create a policy with TTL and stale window given in minutes."""
        return cls(
            ttl_seconds=ttl * 60,
            max_entries=max_entries,
            stale_window_seconds=stale_window * 60,
        )

    @property
    def lifetime_seconds(self) -> float:
        """Longest time an entry may be served after it was stored."""
        return self.ttl_seconds + self.stale_window_seconds

    def __str__(self) -> str:
        return (
            f"ttl={self.ttl_seconds}s stale={self.stale_window_seconds}s "
            f"max={self.max_entries}"
        )


class CacheKey:
    """
    Key builders for the registry's cache consumers.

    The cache treats keys as opaque strings; these builders are the public
    convention for callers (route handlers, repositories, warm-up loaders)
    so that every reader and every invalidation of one record agree on its
    key. Normalisation (case, whitespace) happens here, at the call site,
    never inside the cache itself. Certificate verification uses
    ``verification``; the remaining builders serve the student, dashboard,
    user and academic consumers that live outside this package.
    """

    @staticmethod
    def _require(value: Any, label: str) -> str:
        text = str(value).strip() if value is not None else ""
        if not text:
            raise ValueError(f"{label} cannot be empty")
        return text

    @classmethod
    def user_email(cls, email: str) -> str:
        """Authentication lookup key (emails are case-insensitive)."""
        return cls._require(email, "Email").lower()

    @classmethod
    def verification(cls, identifier: str) -> str:
        """Public certificate verification key (student IDs are upper-case)."""
        return f"verify_{cls._require(identifier, 'Identifier').upper()}"

    @classmethod
    def student_detail(cls, student_id: Union[int, str]) -> str:
        return f"detail_{cls._require(student_id, 'Student ID')}"

    @classmethod
    def student_basic(cls, student_id: Union[int, str]) -> str:
        return f"basic_{cls._require(student_id, 'Student ID')}"

    @classmethod
    def student_list(
        cls,
        page: int,
        limit: int,
        search: str = "",
        filters: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Paginated student list key.

        Filters with a ``None`` value are dropped and the rest are sorted,
        so equivalent queries share one entry.
        """
        if page < 1:
            raise ValueError("Page must be at least 1")
        if limit < 1:
            raise ValueError("Limit must be at least 1")
        active = {k: v for k, v in (filters or {}).items() if v is not None}
        encoded = json.dumps(active, sort_keys=True, default=str, separators=(",", ":"))
        return f"students_{page}_{limit}_{search.strip().lower()}_{encoded}"

    @classmethod
    def dashboard_stats(cls, name: str) -> str:
        return f"stats_{cls._require(name, 'Statistic name')}"

    @classmethod
    def academic(cls, kind: str) -> str:
        """Reference data key, e.g. ``departments`` or ``faculties``."""
        return cls._require(kind, "Reference data kind").lower()
