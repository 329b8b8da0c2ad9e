from __future__ import annotations

"""
Envelope exception handlers.

FastAPI integrates these via app/main.py. Every error is rendered as
`{"success": false, "message": ..., "errors"?: ...}`.
"""

import logging
from typing import Dict, List

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.exceptions import AppException

logger = logging.getLogger(__name__)


def _envelope(message: str, status_code: int, *, errors=None, headers=None, **extra) -> JSONResponse:
    content = {"success": False, "message": message}
    if errors:
        content["errors"] = errors
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:  # type: ignore
    if exc.status_code >= 500:
        logger.warning("%s %s failed with %s: %s", request.method, request.url.path, exc.kind.value, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=exc.headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:  # type: ignore
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _envelope(detail, exc.status_code, headers=getattr(exc, "headers", None))


def _field_errors(exc: RequestValidationError) -> Dict[str, List[str]]:
    out: Dict[str, List[str]] = {}
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path", "form")]
        field = ".".join(loc) or "request"
        out.setdefault(field, []).append(str(err.get("msg", "Invalid value")))
    return out


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # type: ignore
    return _envelope(
        "Validation failed",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        errors=_field_errors(exc),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # type: ignore
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    if settings.APP_DEBUG:
        return _envelope("Server error", status.HTTP_500_INTERNAL_SERVER_ERROR, detail=repr(exc))
    return _envelope("Server error", status.HTTP_500_INTERNAL_SERVER_ERROR)


__all__ = [
    "app_exception_handler",
    "http_exception_handler",
    "validation_exception_handler",
    "global_exception_handler",
]
