"""
🧭✨ FlixCatalog • API Router Aggregator
======================================

Exports the **combined `router`** and each sub-router.

Quick usage
-----------
    from app.api.v1.routers import router as api_router
    app.include_router(api_router, prefix="/api")

Layout
------
- Auth: /login, /register, /refresh, /logout, /logout-all, /user
- Admin: /videos (POST), /videos/upload-urls, /videos/confirm-upload,
  /videos/{id}/update, /videos/{id} (DELETE)
- Public: /videos, /videos-featured, /videos/{id}[/info|/stream|/thumbnail|/download]

Security notes
--------------
- 🔐 This layer is a pure aggregator; auth & rate limits live in child routers.
"""

from fastapi import APIRouter

from app.api.v1.routers.admin import router as admin_router
from app.api.v1.routers.auth.login import router as login_router
from app.api.v1.routers.auth.refresh_logout import router as refresh_logout_router
from app.api.v1.routers.auth.signup import router as signup_router
from app.api.v1.routers.auth.user_info import router as user_info_router
from app.api.v1.routers.videos import router as videos_router


# ─────────────────────────────────────────────────────────────────────────────
# 🧩 Factory: build the combined router with a stable path layout
# ─────────────────────────────────────────────────────────────────────────────
def build_api_router() -> APIRouter:
    """Compose the API surface. Admin routes precede the public `{id}` routes."""
    r = APIRouter()
    r.include_router(login_router)
    r.include_router(signup_router)
    r.include_router(refresh_logout_router)
    r.include_router(user_info_router)
    r.include_router(admin_router)
    r.include_router(videos_router)
    return r


router = build_api_router()

__all__ = [
    "router",
    "build_api_router",
    "admin_router",
    "login_router",
    "signup_router",
    "refresh_logout_router",
    "user_info_router",
    "videos_router",
]
