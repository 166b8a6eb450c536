"""
FastAPI dependencies.

Shared objects live on ``app.state`` and are created by the application
lifespan; handlers receive them through these dependencies.
"""

from fastapi import HTTPException, Request

from ..core.config import Settings
from ..services.cache.ttl_cache import TTLCache
from ..services.cache.maintenance import CacheSweeper
from ..services.verification import CertificateVerificationService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_cache(request: Request) -> TTLCache:
    """Process-wide cache created at startup."""
    return request.app.state.cache


def get_sweeper(request: Request) -> CacheSweeper:
    return request.app.state.sweeper


def get_verification_service(request: Request) -> CertificateVerificationService:
    service = getattr(request.app.state, "verification_service", None)
    if service is None:
        raise HTTPException(
            status_code=503, detail="Certificate verification is not configured"
        )
    return service
