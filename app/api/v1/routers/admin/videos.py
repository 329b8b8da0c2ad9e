"""
📦 FlixCatalog · Admin Video API
===============================

Admin-only write paths for the catalog. All routes require a bearer token of
a user with role `admin` (403 otherwise) and respond with `no-store`.

Routes
------
- POST   /videos                  → direct multipart upload (video + thumbnail)
- POST   /videos/upload-urls      → presigned PUT URLs + keys (30 min)
- POST   /videos/confirm-upload   → verify uploaded objects, create the record
- POST   /videos/{id}/update      → partial update (multipart or JSON)
- DELETE /videos/{id}             → delete record, best-effort object cleanup

Rate limits: `RATE_LIMIT_UPLOAD` for upload routes, `RATE_LIMIT_ADMIN` for
the rest.
"""

# ─────────────────────────────────────────────────────────────────────────────
# 📦 Imports
# ─────────────────────────────────────────────────────────────────────────────
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, Depends, Request, Response, status
from starlette.datastructures import UploadFile as StarletteUploadFile

from app.api.http_utils import envelope
from app.core.config import settings
from app.core.exceptions import ValidationException
from app.core.limiter import rate_limit
from app.db.models.user import User
from app.dependencies.admin import admin_user
from app.dependencies.catalog import get_catalog_service
from app.schemas.video import ConfirmUploadRequest, UploadUrlsRequest
from app.services.catalog_service import CatalogService

router = APIRouter(tags=["Admin • Videos"])

VIDEO_FIELDS = ("title", "genre", "description", "duration", "year", "is_featured")


# ─────────────────────────────────────────────────────────────────────────────
# 🧰 Helpers
# ─────────────────────────────────────────────────────────────────────────────
async def _read_payload(request: Request) -> Tuple[Dict[str, Any], Optional[Any], Optional[Any]]:
    """
    Return ``(fields, video_file, thumbnail_file)`` from a multipart/urlencoded
    form or a JSON object. Only keys actually sent end up in ``fields``.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise ValidationException({"body": ["Malformed JSON body."]})
        if not isinstance(body, dict):
            raise ValidationException({"body": ["Expected a JSON object."]})
        return {k: body[k] for k in VIDEO_FIELDS if k in body}, None, None

    form = await request.form()
    fields = {k: form[k] for k in VIDEO_FIELDS if k in form and isinstance(form[k], str)}
    video = form.get("video")
    thumbnail = form.get("thumbnail")
    return (
        fields,
        video if isinstance(video, StarletteUploadFile) else None,
        thumbnail if isinstance(thumbnail, StarletteUploadFile) else None,
    )


# ─────────────────────────────────────────────────────────────────────────────
# 📤 Uploads
# ─────────────────────────────────────────────────────────────────────────────
@router.post("/videos", status_code=status.HTTP_201_CREATED, summary="Upload a video and thumbnail")
@rate_limit(settings.RATE_LIMIT_UPLOAD)
async def create_video(
    request: Request,
    response: Response,
    _admin: User = Depends(admin_user),
    svc: CatalogService = Depends(get_catalog_service),
):
    fields, video, thumbnail = await _read_payload(request)
    data = await svc.create_from_upload(fields, video, thumbnail)
    return envelope(data, message="Video uploaded successfully", status_code=status.HTTP_201_CREATED, no_store=True)


@router.post("/videos/upload-urls", summary="Presigned PUT URLs for direct upload")
@rate_limit(settings.RATE_LIMIT_UPLOAD)
async def upload_urls(
    payload: UploadUrlsRequest,
    request: Request,
    response: Response,
    _admin: User = Depends(admin_user),
    svc: CatalogService = Depends(get_catalog_service),
):
    return envelope(await svc.upload_urls(payload), no_store=True)


@router.post("/videos/confirm-upload", status_code=status.HTTP_201_CREATED, summary="Create a video from uploaded objects")
@rate_limit(settings.RATE_LIMIT_ADMIN)
async def confirm_upload(
    payload: ConfirmUploadRequest,
    request: Request,
    response: Response,
    _admin: User = Depends(admin_user),
    svc: CatalogService = Depends(get_catalog_service),
):
    data = await svc.confirm_upload(payload)
    return envelope(data, message="Video created successfully", status_code=status.HTTP_201_CREATED, no_store=True)


# ─────────────────────────────────────────────────────────────────────────────
# ✏️ Update / 🗑️ Delete
# ─────────────────────────────────────────────────────────────────────────────
@router.post("/videos/{video_id}/update", summary="Partially update a video")
@rate_limit(settings.RATE_LIMIT_ADMIN)
async def update_video(
    video_id: int,
    request: Request,
    response: Response,
    _admin: User = Depends(admin_user),
    svc: CatalogService = Depends(get_catalog_service),
):
    fields, video, thumbnail = await _read_payload(request)
    data = await svc.update(video_id, fields, video, thumbnail)
    return envelope(data, message="Video updated successfully", no_store=True)


@router.delete("/videos/{video_id}", summary="Delete a video")
@rate_limit(settings.RATE_LIMIT_ADMIN)
async def delete_video(
    video_id: int,
    request: Request,
    response: Response,
    _admin: User = Depends(admin_user),
    svc: CatalogService = Depends(get_catalog_service),
):
    cleanup = await svc.delete(video_id)
    return envelope(message="Video deleted successfully", storage_cleanup=cleanup)


__all__ = ["router"]
