"""
🎬 FlixCatalog · Public & Streaming Video API
============================================

Routes
------
- GET /videos                   → catalog list with presigned URLs (1h)
- GET /videos-featured          → featured list (bearer token required)
- GET /videos/{id}              → one video; `embed_signed` (default true), `ttl`
- GET /videos/{id}/info         → metadata, formatted duration, MIME types
- GET /videos/{id}/stream       → 302 to presigned video URL (`?json=1` for JSON)
- GET /videos/{id}/thumbnail    → 302 to presigned thumbnail URL (`?json=1`)
- GET /videos/{id}/download     → attachment presign + size (bearer token required)

Every response that embeds a presigned URL is marked `Cache-Control: no-store`.
TTLs requested via `?ttl=` are clamped to 60..3600 seconds.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import RedirectResponse

from app.api.http_utils import coerce_bool, envelope
from app.core.config import settings
from app.core.limiter import rate_limit
from app.core.security import get_current_user
from app.db.models.user import User
from app.dependencies.catalog import get_catalog_service
from app.services.catalog_service import CatalogService

router = APIRouter(tags=["Videos"])


def _flag(value: Optional[str], default: bool) -> bool:
    parsed = coerce_bool(value) if value is not None else None
    return default if parsed is None else parsed


def _redirect_or_json(url: str, expires_in: int, as_json: Optional[str]):
    if _flag(as_json, False):
        return envelope({"url": url, "expires_in": expires_in}, no_store=True)
    return RedirectResponse(url, status_code=302, headers={"Cache-Control": "no-store"})


# ─────────────────────────────────────────────────────────────────────────────
# 📚 Lists
# ─────────────────────────────────────────────────────────────────────────────
@router.get("/videos", summary="List all videos")
@rate_limit(settings.RATE_LIMIT_PUBLIC)
async def list_videos(
    request: Request,
    response: Response,
    svc: CatalogService = Depends(get_catalog_service),
):
    return envelope(await svc.list_videos(), no_store=True)


@router.get("/videos-featured", summary="List featured videos")
@rate_limit(settings.RATE_LIMIT_PUBLIC)
async def featured_videos(
    request: Request,
    response: Response,
    _user: User = Depends(get_current_user),
    svc: CatalogService = Depends(get_catalog_service),
):
    return envelope(await svc.featured_videos(), no_store=True)


# ─────────────────────────────────────────────────────────────────────────────
# 🔎 Single video
# ─────────────────────────────────────────────────────────────────────────────
@router.get("/videos/{video_id}", summary="Show one video")
@rate_limit(settings.RATE_LIMIT_PUBLIC)
async def show_video(
    video_id: int,
    request: Request,
    response: Response,
    embed_signed: Optional[str] = Query(None, description="Embed presigned URLs (default true)"),
    ttl: Optional[str] = Query(None, description="Presign TTL in seconds (60..3600)"),
    svc: CatalogService = Depends(get_catalog_service),
):
    data = await svc.show(video_id, embed_signed=_flag(embed_signed, True), ttl=ttl)
    return envelope(data, no_store=True)


@router.get("/videos/{video_id}/info", summary="Video info with presigned URLs")
@rate_limit(settings.RATE_LIMIT_PUBLIC)
async def video_info(
    video_id: int,
    request: Request,
    response: Response,
    svc: CatalogService = Depends(get_catalog_service),
):
    return envelope(await svc.info(video_id), no_store=True)


# ─────────────────────────────────────────────────────────────────────────────
# ▶️ Streaming
# ─────────────────────────────────────────────────────────────────────────────
@router.get("/videos/{video_id}/stream", summary="Redirect to a presigned video URL")
@rate_limit(settings.RATE_LIMIT_STREAMING)
async def stream_video(
    video_id: int,
    request: Request,
    response: Response,
    ttl: Optional[str] = Query(None),
    json: Optional[str] = Query(None, description="Return JSON instead of a redirect"),
    svc: CatalogService = Depends(get_catalog_service),
):
    url, expires_in = await svc.stream_url(video_id, ttl)
    return _redirect_or_json(url, expires_in, json)


@router.get("/videos/{video_id}/thumbnail", summary="Redirect to a presigned thumbnail URL")
@rate_limit(settings.RATE_LIMIT_STREAMING)
async def video_thumbnail(
    video_id: int,
    request: Request,
    response: Response,
    ttl: Optional[str] = Query(None),
    json: Optional[str] = Query(None, description="Return JSON instead of a redirect"),
    svc: CatalogService = Depends(get_catalog_service),
):
    url, expires_in = await svc.thumbnail_url(video_id, ttl)
    return _redirect_or_json(url, expires_in, json)


# ─────────────────────────────────────────────────────────────────────────────
# ⬇️ Download
# ─────────────────────────────────────────────────────────────────────────────
@router.get("/videos/{video_id}/download", summary="Presigned download link")
@rate_limit(settings.RATE_LIMIT_DOWNLOAD)
async def download_video(
    video_id: int,
    request: Request,
    response: Response,
    ttl: Optional[str] = Query(None),
    include_thumbnail: Optional[str] = Query(None),
    _user: User = Depends(get_current_user),
    svc: CatalogService = Depends(get_catalog_service),
):
    data = await svc.download(video_id, ttl=ttl, include_thumbnail=_flag(include_thumbnail, True))
    return envelope(data, no_store=True)


__all__ = ["router"]
