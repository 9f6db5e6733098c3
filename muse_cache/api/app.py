"""
FastAPI Application Entry Point

Admin and health surface for the music-metadata cache. The lifespan
connects the backing store and builds the MusicCache and CacheMetrics
singletons that the routes receive through ``dependencies.py``.
"""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from muse_cache.api.routes.admin import router as admin_router
from muse_cache.api.routes.health import router as health_router
from muse_cache.core.config.constants import HEADER_REQUEST_ID, Stage
from muse_cache.core.config.settings import get_settings
from muse_cache.core.exceptions import CacheError
from muse_cache.core.interfaces.cache import CacheStore
from muse_cache.core.logging.logger import (
    clear_request_id,
    get_logger,
    set_request_id,
    setup_logging,
)
from muse_cache.infrastructure.cache.music_cache import MusicCache
from muse_cache.infrastructure.cache.redis_client import close_redis, init_redis
from muse_cache.infrastructure.monitoring.cache_metrics import CacheMetrics

logger = get_logger(__name__)


# ============================================================================
# Application Lifespan
# ============================================================================


def _lifespan_for(store: CacheStore | None):
    """
    Build the lifespan handler.

    With ``store`` given (tests, embedding) that store is connected and
    closed instead of the global Redis client.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings = get_settings()
        setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

        logger.info(
            "Starting Muse Cache Service",
            stage=Stage.INITIALIZATION.value,
            environment=settings.app.ENVIRONMENT,
            version=settings.app.APP_VERSION,
        )

        if store is None:
            backing = await init_redis()
        else:
            backing = store
            await backing.connect()

        try:
            app.state.store = backing
            app.state.music_cache = MusicCache(backing, settings)
            app.state.cache_metrics = CacheMetrics(backing, settings)
            logger.info("Application startup complete", stage=Stage.INITIALIZATION.value)

            yield

        finally:
            logger.info("Shutting down application")
            if store is None:
                await close_redis()
            else:
                await backing.disconnect()
            logger.info("Application shutdown complete")

    return lifespan


# ============================================================================
# Application Factory
# ============================================================================


def create_app(store: CacheStore | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        store: Optional backing store; defaults to the shared Redis client

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Cache-aside data layer for music metadata with windowed hit/miss telemetry",
        lifespan=_lifespan_for(store),
        docs_url="/docs",
        redoc_url="/redoc",
    )

    base_path = settings.app.API_BASE_PATH
    app.include_router(health_router, prefix=base_path)
    app.include_router(admin_router, prefix=base_path)

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Bind a correlation id to every log line of the request."""
        request_id = request.headers.get(HEADER_REQUEST_ID) or str(uuid.uuid4())
        set_request_id(request_id)
        try:
            response = await call_next(request)
            response.headers[HEADER_REQUEST_ID] = request_id
            return response
        finally:
            clear_request_id()

    @app.exception_handler(CacheError)
    async def cache_exception_handler(request: Request, exc: CacheError):
        """The store is unavailable or misbehaving: report 503."""
        logger.error(
            f"Cache error: {exc.message}",
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        return JSONResponse(status_code=503, content=exc.to_dict())

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "name": settings.app.APP_NAME,
            "version": settings.app.APP_VERSION,
            "environment": settings.app.ENVIRONMENT,
            "docs": "/docs",
            "health": f"{base_path}/health",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "muse_cache.api.app:app",
        host=settings.app.API_HOST,
        port=settings.app.API_PORT,
        reload=settings.app.ENVIRONMENT == "development",
        log_level=settings.logging.LOG_LEVEL.lower(),
    )
