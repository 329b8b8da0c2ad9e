from __future__ import annotations

"""
FlixCatalog — HTTP Rate Limiting (SlowAPI)
==========================================

Highlights
----------
- **User/IP aware** keying: per-user when auth sets `request.state.user_id`,
  else per-client-IP (see `app.api.http_utils.get_client_ip`).
- **Named limits** from settings, one per route family:
  `RATE_LIMIT_AUTH`, `RATE_LIMIT_PUBLIC`, `RATE_LIMIT_STREAMING`,
  `RATE_LIMIT_ADMIN`, `RATE_LIMIT_DOWNLOAD`, `RATE_LIMIT_UPLOAD`.
- **Exemptions**: health/docs paths and the global `RATE_LIMIT_ENABLED` switch
  (tests run with it off).
- **Backends**: `RATELIMIT_STORAGE_URI` (e.g. Redis) or in-memory fallback.
- **Envelope 429**: `{"success": false, "message": "Too many requests"}`.

Usage
-----
    from app.core.limiter import install_rate_limiter, rate_limit

    app = FastAPI()
    install_rate_limiter(app)

    @router.post("/login")
    @rate_limit(settings.RATE_LIMIT_AUTH)
    async def login(request: Request, response: Response): ...
"""

from typing import Callable, List, Optional

from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.requests import Request

from app.api.http_utils import get_client_ip
from app.core.config import settings

SKIP_PATHS: List[str] = ["/healthz", "/readyz", "/docs", "/redoc", "/openapi.json", "/favicon.ico"]


# ──────────────────────────────────────────────────────────────
# 🧠 Keying & exemptions
# ──────────────────────────────────────────────────────────────
def get_user_rate_limit_key(request: Request) -> str:
    """
    Build a limiter key. Priority:
      1) user:<user_id>  (when auth sets `request.state.user_id`)
      2) ip:<addr>       (fallback)
    """
    user_id = getattr(request.state, "user_id", None)
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_client_ip(request) or 'unknown'}"


def should_exempt_request(request: Optional[Request]) -> bool:
    if not settings.RATE_LIMIT_ENABLED:
        return True
    if request is None:
        return False
    path = request.url.path
    return any(path == p or path.startswith(p + "/") for p in SKIP_PATHS)


# ──────────────────────────────────────────────────────────────
# 🧰 Limiter instance (Redis / memory)
# ──────────────────────────────────────────────────────────────
limiter = Limiter(
    key_func=get_user_rate_limit_key,
    default_limits=[settings.RATE_LIMIT_PUBLIC],
    headers_enabled=True,
    storage_uri=settings.ratelimit_storage,
    enabled=settings.RATE_LIMIT_ENABLED,
)


# ──────────────────────────────────────────────────────────────
# 🎛 Decorators
# ──────────────────────────────────────────────────────────────
def _exempt_when(request: Optional[Request] = None) -> bool:
    """Accepts the Request when SlowAPI passes it; older versions pass nothing."""
    return should_exempt_request(request)


def _chain(decorators: List[Callable]) -> Callable:
    def _apply(fn: Callable) -> Callable:
        for deco in reversed(decorators):
            fn = deco(fn)
        return fn
    return _apply


def rate_limit(*limits: str) -> Callable:
    """
    Apply per-route limits.

    Examples
    --------
    @rate_limit(settings.RATE_LIMIT_AUTH)
    @rate_limit("5/second", "100/minute")
    """
    selected = list(limits) if limits else [settings.RATE_LIMIT_PUBLIC]
    return _chain([limiter.limit(value, exempt_when=_exempt_when) for value in selected])


def rate_limit_exempt() -> Callable:
    """Explicitly exempt a route from limiting."""
    return limiter.exempt


# ──────────────────────────────────────────────────────────────
# 🔧 Installer
# ──────────────────────────────────────────────────────────────
async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.info("[RateLimit] {} {} exceeded: {}", request.method, request.url.path, exc.detail)
    response = JSONResponse(status_code=429, content={"success": False, "message": "Too many requests"})
    view_limit = getattr(request.state, "view_rate_limit", None)
    if view_limit is not None:
        response = request.app.state.limiter._inject_headers(response, view_limit)
    return response


def install_rate_limiter(app) -> None:
    """
    Attach the limiter, its 429 handler and the SlowAPI middleware.

    With `RATE_LIMIT_ENABLED=false` the limiter is still attached (decorated
    routes need it) but the middleware is skipped.
    """
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    if not settings.RATE_LIMIT_ENABLED:
        logger.info("RateLimiter disabled by settings; middleware not installed")
        return
    app.add_middleware(SlowAPIMiddleware)
    logger.info("✅ SlowAPI middleware installed | storage={}", settings.ratelimit_storage)


__all__ = [
    "limiter",
    "rate_limit",
    "rate_limit_exempt",
    "install_rate_limiter",
    "should_exempt_request",
    "get_user_rate_limit_key",
]
