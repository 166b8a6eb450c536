"""
Cache services: the namespaced stale-while-revalidate cache and the
background tasks that maintain it.
"""

from .ttl_cache import TTLCache
from .namespaces import build_cache, default_policies
from .maintenance import CacheSweeper
from .warmup import CacheWarmer, WarmupReport

__all__ = [
    "TTLCache",
    "build_cache",
    "default_policies",
    "CacheSweeper",
    "CacheWarmer",
    "WarmupReport",
]
