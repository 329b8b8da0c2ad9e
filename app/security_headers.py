# app/security_headers.py
from __future__ import annotations

"""
# FlixCatalog — Security Headers & CORS

## What you get
- **Headers**: X-Content-Type-Options, X-Frame-Options, Referrer-Policy and
  (production only) HSTS, added at response start by a pure ASGI middleware.
- **CORS installer**: allow-list from `settings.BACKEND_CORS_ORIGINS`.
- **Cache helper**: `set_sensitive_cache()` for token and signed-URL responses.

## Quick start
    from app.security_headers import install_security, configure_cors

    app = FastAPI()
    install_security(app)
    configure_cors(app)
"""

from typing import Iterable, List, Optional, Tuple

from fastapi import Response
from starlette.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.core.config import settings

_BASE_HEADERS: Tuple[Tuple[str, str], ...] = (
    ("X-Content-Type-Options", "nosniff"),
    ("X-Frame-Options", "DENY"),
    ("Referrer-Policy", "strict-origin-when-cross-origin"),
)
_HSTS = ("Strict-Transport-Security", "max-age=31536000; includeSubDomains")


class SecurityHeadersMiddleware:
    """Adds baseline security headers unless the route already set them."""

    def __init__(self, app: ASGIApp, *, hsts: bool = False) -> None:
        self.app = app
        self.headers: List[Tuple[str, str]] = list(_BASE_HEADERS) + ([_HSTS] if hsts else [])

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        async def _send(message: Message) -> None:
            if message["type"] == "http.response.start":
                raw = list(message.get("headers", []))
                present = {k.lower() for k, _ in raw}
                for name, value in self.headers:
                    if name.lower().encode("latin-1") not in present:
                        raw.append((name.encode("latin-1"), value.encode("latin-1")))
                message["headers"] = raw
            await send(message)

        await self.app(scope, receive, _send)


def set_sensitive_cache(response: Response) -> None:
    """Mark a response as non-cacheable (tokens, presigned URLs). Idempotent."""
    response.headers.setdefault("Cache-Control", "no-store")
    response.headers.setdefault("Pragma", "no-cache")
    response.headers.setdefault("Expires", "0")


def configure_cors(
    app,
    *,
    origins: Optional[Iterable[str]] = None,
    allow_credentials: bool = True,
) -> None:
    """Install CORS with the configured allow-list."""
    allow = [str(o) for o in (origins if origins is not None else settings.BACKEND_CORS_ORIGINS)]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow,
        allow_credentials=allow_credentials,
        allow_methods=["GET", "HEAD", "OPTIONS", "POST", "DELETE"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["Location", "Retry-After", "X-Request-ID"],
        max_age=3600,
    )


def install_security(app) -> None:
    app.add_middleware(SecurityHeadersMiddleware, hsts=settings.is_production)


__all__ = ["SecurityHeadersMiddleware", "set_sensitive_cache", "configure_cors", "install_security"]
