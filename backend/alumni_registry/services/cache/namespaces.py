"""
Default cache namespaces.

One policy per consumer area of the registry, sized from Settings.
"""

from typing import Callable, Dict, Optional

from ...core.config import Settings
from ...domain.cache.value_objects import NamespacePolicy
from .ttl_cache import TTLCache

USERS = "users"
STUDENTS = "students"
DASHBOARD = "dashboard"
AUDIT = "audit"
ACADEMIC = "academic"
VERIFY = "verify"


def default_policies(settings: Settings) -> Dict[str, NamespacePolicy]:
    """Build the namespace catalogue from configuration."""
    policies = {}
    for name in (USERS, STUDENTS, DASHBOARD, AUDIT, ACADEMIC, VERIFY):
        prefix = f"CACHE_{name.upper()}"
        policies[name] = NamespacePolicy(
            ttl_seconds=getattr(settings, f"{prefix}_TTL_SECONDS"),
            stale_window_seconds=getattr(settings, f"{prefix}_STALE_SECONDS"),
            max_entries=getattr(settings, f"{prefix}_MAX_ENTRIES"),
        )
    return policies


def build_cache(
    settings: Settings, clock: Optional[Callable[[], float]] = None
) -> TTLCache:
    """Create a cache with every default namespace registered."""
    kwargs = {"deduplicate_misses": settings.CACHE_DEDUPLICATE_MISSES}
    if clock is not None:
        kwargs["clock"] = clock
    cache = TTLCache(**kwargs)
    for name, policy in default_policies(settings).items():
        cache.register_namespace(name, policy)
    return cache
