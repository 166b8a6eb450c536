"""
Cache Domain Exceptions

Exceptions for cache configuration and producer failures.
Misses, expiries and evictions are normal control flow and never raise.
"""

from typing import Optional, Any, Dict
from fastapi import HTTPException


class CacheException(Exception):
    """Base exception for cache errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class NamespaceNotFoundError(CacheException):
    """Raised when a caller references a namespace that was never registered.

    This is a configuration mistake; retrying will not help.
    """

    def __init__(self, namespace: str):
        super().__init__(
            message=f"Cache namespace '{namespace}' not found",
            error_code="CACHE_NAMESPACE_NOT_FOUND",
            details={"namespace": namespace},
        )


class NamespaceAlreadyRegisteredError(CacheException):
    """Raised when a namespace name is registered twice."""

    def __init__(self, namespace: str):
        super().__init__(
            message=f"Cache namespace '{namespace}' is already registered",
            error_code="CACHE_NAMESPACE_EXISTS",
            details={"namespace": namespace},
        )


class ProducerError(CacheException):
    """Data-source failure raised by a producer function.

    Producers may raise this (or any other exception). The cache re-raises
    producer exceptions unchanged on a cold miss and only logs them during
    a background refresh.
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details = {}
        if source:
            details["source"] = source
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=message, error_code="CACHE_PRODUCER_ERROR", details=details
        )
        if original_error:
            self.__cause__ = original_error


# HTTP Exceptions for API layer
class CacheHTTPException(HTTPException):
    """HTTP exception wrapper for cache errors."""

    def __init__(self, cache_exception: CacheException, status_code: int = 500):
        self.cache_exception = cache_exception
        super().__init__(
            status_code=status_code,
            detail={
                "error": cache_exception.error_code,
                "message": cache_exception.message,
                "details": cache_exception.details,
            },
        )

    @classmethod
    def from_exception(cls, exc: CacheException) -> "CacheHTTPException":
        """Pick the status code matching the exception type."""
        if isinstance(exc, NamespaceNotFoundError):
            return cls(exc, status_code=404)
        if isinstance(exc, NamespaceAlreadyRegisteredError):
            return cls(exc, status_code=409)
        if isinstance(exc, ProducerError):
            return cls(exc, status_code=503)
        return cls(exc)
