from __future__ import annotations

"""
Admin router package
====================

Aggregates admin-only routers into a single `router` export. Admin paths live
under the same `/videos` namespace as the public ones, so this router must be
included *before* the public video router (static segments such as
`/videos/upload-urls` are matched ahead of `/videos/{id}` routes).

Common 401/403/429 responses are attached at include-time for a uniform
OpenAPI; behavior is unchanged.
"""

from typing import Any, Dict

from fastapi import APIRouter, status

from .videos import router as videos_router

COMMON_ADMIN_RESPONSES: Dict[int, Dict[str, Any]] = {
    status.HTTP_401_UNAUTHORIZED: {"description": "Unauthenticated"},
    status.HTTP_403_FORBIDDEN: {"description": "Forbidden (admin role required)"},
    status.HTTP_429_TOO_MANY_REQUESTS: {"description": "Rate limit exceeded"},
}

router = APIRouter()
router.include_router(videos_router, responses=COMMON_ADMIN_RESPONSES)

__all__ = ["router", "videos_router", "COMMON_ADMIN_RESPONSES"]
