"""
Cache Domain Module

Entries, namespaces, policies and key conventions for the in-process
stale-while-revalidate cache.
"""

from .entities import CacheEntry, CacheNamespace, NamespaceStats
from .exceptions import (
    CacheException,
    CacheHTTPException,
    NamespaceAlreadyRegisteredError,
    NamespaceNotFoundError,
    ProducerError,
)
from .value_objects import CacheKey, EntryState, NamespacePolicy

__all__ = [
    "CacheEntry",
    "CacheNamespace",
    "NamespaceStats",
    "CacheException",
    "CacheHTTPException",
    "NamespaceAlreadyRegisteredError",
    "NamespaceNotFoundError",
    "ProducerError",
    "CacheKey",
    "EntryState",
    "NamespacePolicy",
]
