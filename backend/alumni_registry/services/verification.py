"""
Certificate Verification Service

Public lookup of graduate records by student identifier. Results,
including "not found", are cached briefly in the ``verify`` namespace so
repeated lookups of the same identifier do not reach the database.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import structlog

from ..domain.cache.value_objects import CacheKey
from .cache.namespaces import VERIFY
from .cache.ttl_cache import TTLCache

logger = structlog.get_logger(__name__)

RecordLookup = Callable[[str], Awaitable[Optional[Dict[str, Any]]]]


@dataclass(frozen=True)
class VerificationResult:
    """Verification outcome returned to the public endpoint."""

    found: bool
    identifier: str
    record: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "found": self.found,
            "identifier": self.identifier,
            "record": self.record,
        }


class CertificateVerificationService:
    """
    Verifies graduate certificates through the cache.

    Args:
        cache: Shared cache with the ``verify`` namespace registered
        lookup: Async function returning the graduate record for a
            normalised identifier, or None when there is no such graduate
        namespace: Namespace holding verification results
    """

    def __init__(self, cache: TTLCache, lookup: RecordLookup, namespace: str = VERIFY):
        self.cache = cache
        self.lookup = lookup
        self.namespace = namespace
        # Unknown namespaces fail at construction, not on the first request
        self.cache.policy(namespace)

    async def verify(self, identifier: str) -> VerificationResult:
        """Verify one identifier. Unknown identifiers yield ``found=False``."""
        key = CacheKey.verification(identifier)
        normalized = identifier.strip().upper()

        async def produce() -> VerificationResult:
            record = await self.lookup(normalized)
            if record is None:
                logger.info("Verification lookup found no graduate", identifier=normalized)
                return VerificationResult(found=False, identifier=normalized)
            return VerificationResult(found=True, identifier=normalized, record=record)

        return await self.cache.get(self.namespace, key, produce)

    def forget(self, identifier: str) -> bool:
        """Drop the cached result for one identifier after its record changes."""
        return self.cache.invalidate(self.namespace, CacheKey.verification(identifier))

    def reset(self) -> int:
        """Drop every cached verification result."""
        return self.cache.clear(self.namespace)
