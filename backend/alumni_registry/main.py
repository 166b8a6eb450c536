"""
Alumni Registry Backend - Main FastAPI Application

Builds the process-wide cache at startup, keeps it swept and warm in the
background, and exposes it to handlers through ``app.state``.
"""

from contextlib import asynccontextmanager
from typing import Callable, Iterable, Optional, Tuple

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from opentelemetry import trace

from . import __version__
from .api.endpoints.cache_monitoring import router as cache_monitoring_router
from .api.endpoints.health import router as health_router
from .api.endpoints.verification import router as verification_router
from .core.config import Settings, get_settings
from .core.logging import configure_logging
from .domain.cache.exceptions import CacheException, CacheHTTPException
from .services.cache.maintenance import CacheSweeper
from .services.cache.namespaces import build_cache
from .services.cache.ttl_cache import Producer
from .services.cache.warmup import CacheWarmer
from .services.verification import CertificateVerificationService, RecordLookup

logger = structlog.get_logger()


def create_app(
    settings: Optional[Settings] = None,
    verification_lookup: Optional[RecordLookup] = None,
    warmup_loaders: Iterable[Tuple[str, str, Producer]] = (),
    clock: Optional[Callable[[], float]] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Configuration; read from the environment when omitted
        verification_lookup: Record lookup backing ``/verify``; the
            endpoint answers 503 without it
        warmup_loaders: ``(namespace, key, produce)`` triples preloaded at
            startup
        clock: Time source for the cache, mainly for tests
    """
    settings = settings or get_settings()
    loaders = list(warmup_loaders)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Starting Alumni Registry API",
            version=__version__,
            environment=settings.ENVIRONMENT,
        )
        cache = build_cache(settings, clock=clock)
        sweeper = CacheSweeper(cache, settings.CACHE_SWEEP_INTERVAL_SECONDS)
        warmer = CacheWarmer(cache, settings.CACHE_WARMUP_INTERVAL_SECONDS)
        for namespace, key, produce in loaders:
            warmer.register(namespace, key, produce)

        app.state.cache = cache
        app.state.sweeper = sweeper
        app.state.warmer = warmer
        if verification_lookup is not None:
            app.state.verification_service = CertificateVerificationService(
                cache, verification_lookup
            )

        await sweeper.start()
        if warmer.loaders:
            await warmer.start()

        yield

        logger.info("Shutting down Alumni Registry API")
        await warmer.stop()
        await sweeper.stop()
        await cache.drain()

    configure_logging(settings)

    app = FastAPI(
        title="Alumni Registry API",
        version=__version__,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.include_router(health_router)
    app.include_router(cache_monitoring_router)
    app.include_router(verification_router)

    @app.exception_handler(CacheException)
    async def cache_exception_handler(request: Request, exc: CacheException):
        """Translate cache and producer errors into JSON responses."""
        http_exc = CacheHTTPException.from_exception(exc)
        span = trace.get_current_span()
        span.set_attribute("error.type", type(exc).__name__)
        span.set_attribute("error.path", request.url.path)
        logger.error(
            "Cache operation failed",
            path=request.url.path,
            error_code=exc.error_code,
            error=exc.message,
        )
        return JSONResponse(
            status_code=http_exc.status_code, content={"detail": http_exc.detail}
        )

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.API_HOST, port=settings.API_PORT)
