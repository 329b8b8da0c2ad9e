# app/main.py
from __future__ import annotations

"""
# FlixCatalog API — Application Entrypoint (FastAPI)

ASGI application factory and lifecycle for the FlixCatalog video catalog
(metadata in PostgreSQL, media in S3, presigned delivery).

## Design Goals
- Deterministic, testable **app factory** (`create_app`) with explicit lifespan.
- Explicit **middleware order**:
  1) request id → 2) security headers → 3) CORS → 4) gzip → 5) rate limits
  → 6) strip `Server` header.
- Centralized exception handling with a single JSON error envelope.
- Shared clients (object store, metadata cache) built once in the lifespan and
  exposed on `app.state`.

## Probes
- `/healthz` — liveness (process up).
- `/readyz` — readiness (quick DB/Redis checks).
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional
import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.gzip import GZipMiddleware
from starlette.responses import JSONResponse, Response

# -- Logging bootstrap (Loguru + stdlib intercept) ----------------------------
from app.core import logger as _logsetup  # noqa: F401

from app.cache.metadata_cache import MemoryCacheBackend, MetadataCache, RedisCacheBackend
from app.core.config import settings
from app.core.exception_handlers import (
    app_exception_handler,
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from app.core.exceptions import AppException
from app.core.limiter import install_rate_limiter, rate_limit_exempt
from app.core.redis_client import redis_wrapper
from app.core.storage import StorageConfig
from app.db.session import async_engine, db_healthcheck
from app.middleware.request_id import RequestIDMiddleware
from app.security_headers import configure_cors, install_security
from app.utils.aws import S3Client, S3StorageError

logger = logging.getLogger("flixcatalog")


# ─────────────────────────────────────────────────────────────────────────────
# 🧱 Shared clients
# ─────────────────────────────────────────────────────────────────────────────
def build_metadata_cache() -> MetadataCache:
    """Metadata cache on the configured backend (`redis` or in-process `memory`)."""
    if settings.CACHE_BACKEND == "memory":
        backend = MemoryCacheBackend()
    else:
        backend = RedisCacheBackend(redis_wrapper)
    return MetadataCache(
        backend,
        item_ttl=settings.CACHE_TTL_VIDEO,
        list_ttl=settings.CACHE_TTL_VIDEOS,
        featured_ttl=settings.CACHE_TTL_FEATURED,
    )


def build_storage() -> Optional[S3Client]:
    """S3 client, or None when storage is not configured (routes answer 503)."""
    try:
        return S3Client(StorageConfig.from_settings(settings))
    except S3StorageError as e:
        logger.warning("Object storage unavailable: %s", e)
        return None


async def _create_tables() -> None:
    from app.db.base import Base

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("🗄️ Database tables ensured")


# ─────────────────────────────────────────────────────────────────────────────
# 🔄 Lifespan: startup & shutdown
# ─────────────────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifecycle manager.

    Startup:
        - Connect to Redis (non-fatal on failure; auth needs it, the cache can
          fall back to memory).
        - Build the object store and metadata cache on `app.state`.
        - Create tables outside production-like environments.
        - Start the refresh-token expiry sweep.

    Shutdown:
        - Stop the scheduler, dispose the DB engine, close Redis.
    """
    logger.info("✅ %s starting up (env=%s)", settings.PROJECT_NAME, settings.ENV)

    try:
        await redis_wrapper.connect()
    except RuntimeError:
        logger.exception("Redis connect failed (continuing in degraded mode)")

    app.state.storage = build_storage()
    app.state.metadata_cache = build_metadata_cache()

    if settings.ENV in ("development", "test"):
        await _create_tables()

    scheduler = None
    if settings.TOKEN_CLEANUP_ENABLED and settings.ENV != "test":
        from app.utils.token_cleanup import start_token_cleanup_scheduler

        scheduler = start_token_cleanup_scheduler()

    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.shutdown(wait=False)
            logger.info("🛑 Token cleanup scheduler stopped")

        await async_engine.dispose()
        logger.info("🛑 Database engine disposed")

        await redis_wrapper.close()
        logger.info("🛑 %s shutting down", settings.PROJECT_NAME)


# ─────────────────────────────────────────────────────────────────────────────
# 🏗️ App factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app() -> FastAPI:
    """
    Build and configure the FastAPI app instance.

    Returns:
        FastAPI: fully wired application with middleware, exception handlers,
        routers, and health/readiness endpoints.
    """
    docs_url = "/docs" if settings.ENABLE_DOCS else None
    redoc_url = "/redoc" if settings.ENABLE_DOCS else None
    openapi_url = "/openapi.json" if settings.ENABLE_DOCS else None

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        docs_url=docs_url,
        redoc_url=redoc_url,
        openapi_url=openapi_url,
        lifespan=lifespan,
    )
    # Overwritten by the lifespan; tests assign their own doubles.
    app.state.storage = None
    app.state.metadata_cache = None

    # ── Middlewares (order matters) ─────────────────────────────────────────
    app.add_middleware(RequestIDMiddleware)  # 1) Correlation ID
    install_security(app)                    # 2) Security headers
    configure_cors(app)                      # 3) CORS allow-list
    app.add_middleware(GZipMiddleware, minimum_size=1024)  # 4) GZip
    install_rate_limiter(app)                # 5) SlowAPI + 429 handler

    # 6) Strip the `Server` header at the end of the chain
    @app.middleware("http")
    async def _strip_server_header(request: Request, call_next: Callable) -> Response:
        """Remove the `Server` header to avoid leaking implementation details."""
        response: Response = await call_next(request)
        if "server" in response.headers:
            del response.headers["server"]
        return response

    # ── Exception handlers ──────────────────────────────────────────────────
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)  # type: ignore[arg-type]

    # ── Routers ─────────────────────────────────────────────────────────────
    from app.api.v1.routers import router as api_router

    app.include_router(api_router, prefix=settings.API_PREFIX)

    # ── Meta endpoints ──────────────────────────────────────────────────────
    @app.get("/healthz", tags=["meta"])
    @rate_limit_exempt()
    async def healthz() -> dict[str, bool]:
        """Liveness probe. No external checks."""
        return {"ok": True}

    @app.get("/readyz", tags=["meta"])
    @rate_limit_exempt()
    async def readyz() -> JSONResponse:
        """
        Readiness probe (DB + Redis).

        Returns 200 with per-dependency booleans when both are reachable,
        503 otherwise.
        """
        db_ok = await db_healthcheck()
        redis_ok = await redis_wrapper.is_connected()
        ready = bool(db_ok and redis_ok)
        return JSONResponse(
            {"ready": ready, "checks": {"db": db_ok, "redis": redis_ok}},
            status_code=200 if ready else 503,
        )

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Minimal root that points to docs (when enabled)."""
        return JSONResponse(
            {"name": settings.PROJECT_NAME, "docs": app.docs_url or "", "version": settings.VERSION}
        )

    return app


# ─────────────────────────────────────────────────────────────────────────────
# 🚀 Module-level ASGI app for Uvicorn/Gunicorn
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()
__all__ = ["create_app", "app", "build_metadata_cache", "build_storage"]


# Local dev runner (prefer: `uvicorn app.main:app --reload`)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "1") == "1",
        workers=int(os.getenv("WORKERS", "1")),
        log_level=settings.LOG_LEVEL.lower(),
    )
