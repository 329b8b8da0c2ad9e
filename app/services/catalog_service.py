# app/services/catalog_service.py
from __future__ import annotations

"""
🎬 FlixCatalog — Video Catalog Service
=====================================

Orchestrates persistence, the metadata cache and the object store to answer
catalog reads, mint presigned media URLs and run the admin write paths.

Reads
-----
- `list_videos` / `featured_videos`: cached lists, each item carrying
  presigned `video_url` / `thumbnail_url` (1 hour) plus API endpoints.
- `show`: one video with raw stored keys and, when `embed_signed`, presigned
  URLs for a caller-chosen TTL (clamped to 60..3600).
- `info`: metadata, formatted duration, presigned URLs (10 min) and MIME types.
- `stream_url` / `thumbnail_url`: HEAD the object then presign it with the
  matching response content type.
- `download`: attachment-disposition presign with a slugified filename and
  object size; the thumbnail block is best-effort and degrades to `None`.

Writes
------
- `create_from_upload`: server-side multipart upload of both assets.
- `upload_urls` + `confirm_upload`: presigned PUT flow; the confirm step
  verifies both objects exist before the row is created.
- `update`: typed partial update, asset replacement, single commit.
- `delete`: best-effort object removal reported as `storage_cleanup`.

Every write invalidates the cache after the database commit. Blocking boto3
calls (HEAD/PUT/DELETE) run in worker threads via `asyncio.to_thread`;
signing is local and runs inline. `S3StorageError` never escapes this module:
it is logged and re-raised as `StorageException` (HTTP 502).
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.http_utils import slug_filename
from app.cache.metadata_cache import MetadataCache
from app.core.config import settings
from app.core.exceptions import (
    BadRequestException,
    NotFoundException,
    StorageException,
    ValidationException,
)
from app.core.storage import (
    S3_PREFIX_THUMBNAILS,
    S3_PREFIX_VIDEOS,
    clamp_read_ttl,
    clamp_upload_ttl,
)
from app.db.models.video import Video
from app.repositories.videos import VideoRepository, to_dict
from app.schemas.video import ConfirmUploadRequest, UploadUrlsRequest, VideoCreate, VideoPatch, parse_model
from app.utils.aws import S3Client, S3StorageError
from app.utils.mime import (
    IMAGE_UPLOAD_EXTENSIONS,
    VIDEO_UPLOAD_EXTENSIONS,
    guess_image_mime,
    guess_video_mime,
)
from app.utils.object_keys import build_object_key, key_extension, normalize_key

logger = logging.getLogger("flixcatalog.catalog")

Row = Dict[str, Any]


# ─────────────────────────────────────────────────────────────
# ⏱️ Duration helpers
# ─────────────────────────────────────────────────────────────
def format_duration(seconds: Optional[int]) -> str:
    """``H:MM:SS`` from one hour up, ``MM:SS`` below."""
    total = max(int(seconds or 0), 0)
    h, rem = divmod(total, 3600)
    m, s = divmod(rem, 60)
    return f"{h}:{m:02d}:{s:02d}" if h > 0 else f"{m:02d}:{s:02d}"


def duration_minutes(seconds: Optional[int]) -> float:
    return round((seconds or 0) / 60, 1)


def _upload_size(upload: UploadFile) -> int:
    if upload.size is not None:
        return int(upload.size)
    f = upload.file
    pos = f.tell()
    f.seek(0, 2)
    size = f.tell()
    f.seek(pos)
    return size


class CatalogService:
    """
    Per-request orchestration object.

    Parameters
    ----------
    db : AsyncSession
        Request-scoped session.
    storage : S3Client
        Shared client (or any object exposing the same methods).
    cache : MetadataCache
        Shared metadata cache.
    bucket : str | None
        Used to strip path-style bucket prefixes from legacy URL values.
    endpoint_base : str
        Prefix for the `stream_endpoint` / `thumbnail_endpoint` links.
    """

    def __init__(
        self,
        db: AsyncSession,
        storage: S3Client,
        cache: MetadataCache,
        *,
        bucket: Optional[str] = None,
        endpoint_base: str = "/api",
        max_video_bytes: int = settings.MAX_VIDEO_UPLOAD_BYTES,
        max_thumbnail_bytes: int = settings.MAX_THUMBNAIL_UPLOAD_BYTES,
    ):
        self.db = db
        self.repo = VideoRepository(db)
        self.storage = storage
        self.cache = cache
        self.bucket = bucket
        self.endpoint_base = endpoint_base.rstrip("/")
        self.max_video_bytes = max_video_bytes
        self.max_thumbnail_bytes = max_thumbnail_bytes

    # ─────────────────────────────────────────────────────────
    # 🔧 Storage plumbing
    # ─────────────────────────────────────────────────────────
    async def _io(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except S3StorageError as e:
            logger.error("storage %s failed: %s", getattr(fn, "__name__", fn), e)
            raise StorageException() from e

    def _presign(
        self,
        key: Optional[str],
        ttl: int,
        *,
        content_type: Optional[str] = None,
        disposition: Optional[str] = None,
    ) -> Optional[str]:
        if not key:
            return None
        try:
            return self.storage.presigned_get(
                key,
                expires_in=ttl,
                response_content_type=content_type,
                response_content_disposition=disposition,
            )
        except S3StorageError as e:
            logger.error("presign failed for key=%s: %s", key, e)
            raise StorageException() from e

    def _keys(self, row: Row) -> Tuple[Optional[str], Optional[str]]:
        return (
            normalize_key(row.get("video_key"), bucket=self.bucket),
            normalize_key(row.get("thumbnail_key"), bucket=self.bucket),
        )

    # ─────────────────────────────────────────────────────────
    # 🧾 Shapes
    # ─────────────────────────────────────────────────────────
    def _endpoints(self, video_id: int) -> Dict[str, str]:
        return {
            "stream_endpoint": f"{self.endpoint_base}/videos/{video_id}/stream",
            "thumbnail_endpoint": f"{self.endpoint_base}/videos/{video_id}/thumbnail",
        }

    @staticmethod
    def _public(row: Row) -> Row:
        return {
            "id": row["id"],
            "title": row["title"],
            "genre": row["genre"],
            "description": row.get("description"),
            "duration": row.get("duration", 0),
            "duration_minutes": duration_minutes(row.get("duration")),
            "duration_formatted": format_duration(row.get("duration")),
            "year": row.get("year"),
            "is_featured": bool(row.get("is_featured")),
            "created_at": row.get("created_at"),
            "updated_at": row.get("updated_at"),
        }

    def _detail(self, row: Row) -> Row:
        video_key, thumb_key = self._keys(row)
        return {
            **self._public(row),
            **self._endpoints(row["id"]),
            "original_video_url": video_key,
            "original_thumbnail_url": thumb_key,
        }

    def _list_item(self, row: Row) -> Row:
        video_key, thumb_key = self._keys(row)
        ttl = settings.PRESIGN_LIST_TTL
        return {
            **self._public(row),
            "video_url": self._presign(video_key, ttl, content_type=guess_video_mime(video_key)),
            "thumbnail_url": self._presign(thumb_key, ttl, content_type=guess_image_mime(thumb_key)),
            **self._endpoints(row["id"]),
        }

    async def _row(self, video_id: int) -> Row:
        row = await self.cache.video(video_id, lambda: self.repo.get_dict(video_id))
        if row is None:
            raise NotFoundException("Video not found")
        return row

    async def _model(self, video_id: int) -> Video:
        video = await self.repo.get(video_id)
        if video is None:
            raise NotFoundException("Video not found")
        return video

    # ─────────────────────────────────────────────────────────
    # 📚 Reads
    # ─────────────────────────────────────────────────────────
    async def list_videos(self) -> List[Row]:
        rows = await self.cache.videos(self.repo.list_all)
        return [self._list_item(r) for r in rows]

    async def featured_videos(self) -> List[Row]:
        rows = await self.cache.featured(self.repo.list_featured)
        return [self._list_item(r) for r in rows]

    async def show(self, video_id: int, *, embed_signed: bool = True, ttl: Any = None) -> Row:
        row = await self._row(video_id)
        data = self._detail(row)
        if embed_signed:
            effective = clamp_read_ttl(ttl, default=settings.PRESIGN_DEFAULT_TTL)
            video_key, thumb_key = self._keys(row)
            data["video_url"] = self._presign(video_key, effective, content_type=guess_video_mime(video_key))
            data["thumbnail_url"] = self._presign(thumb_key, effective, content_type=guess_image_mime(thumb_key))
            data["expires_in"] = effective
        return data

    async def info(self, video_id: int) -> Row:
        row = await self._row(video_id)
        video_key, thumb_key = self._keys(row)
        ttl = clamp_read_ttl(settings.PRESIGN_DEFAULT_TTL)
        return {
            **self._public(row),
            **self._endpoints(row["id"]),
            "video_url": self._presign(video_key, ttl, content_type=guess_video_mime(video_key)),
            "thumbnail_url": self._presign(thumb_key, ttl, content_type=guess_image_mime(thumb_key)),
            "video_mime_type": guess_video_mime(video_key) if video_key else None,
            "thumbnail_mime_type": guess_image_mime(thumb_key) if thumb_key else None,
            "expires_in": ttl,
        }

    async def _signed_asset(self, video_id: int, ttl: Any, *, thumbnail: bool) -> Tuple[str, int]:
        missing = "Thumbnail not found" if thumbnail else "Video not found"
        row = await self._row(video_id)
        video_key, thumb_key = self._keys(row)
        key = thumb_key if thumbnail else video_key
        if not key:
            raise NotFoundException(missing)
        if not await self._io(self.storage.exists, key):
            raise NotFoundException(missing)
        effective = clamp_read_ttl(ttl, default=settings.PRESIGN_DEFAULT_TTL)
        mime = guess_image_mime(key) if thumbnail else guess_video_mime(key)
        return self._presign(key, effective, content_type=mime), effective

    async def stream_url(self, video_id: int, ttl: Any = None) -> Tuple[str, int]:
        """Presigned GET for the video object → ``(url, expires_in)``."""
        return await self._signed_asset(video_id, ttl, thumbnail=False)

    async def thumbnail_url(self, video_id: int, ttl: Any = None) -> Tuple[str, int]:
        """Presigned GET for the thumbnail object → ``(url, expires_in)``."""
        return await self._signed_asset(video_id, ttl, thumbnail=True)

    async def download(self, video_id: int, *, ttl: Any = None, include_thumbnail: bool = True) -> Row:
        row = await self._row(video_id)
        video_key, thumb_key = self._keys(row)
        if not video_key:
            raise BadRequestException("Invalid video key")
        if not await self._io(self.storage.exists, video_key):
            raise NotFoundException("Video file not found in storage")

        effective = clamp_read_ttl(ttl, default=settings.PRESIGN_DOWNLOAD_TTL)
        mime = guess_video_mime(video_key)
        filename = slug_filename(row.get("title"), key_extension(video_key))
        url = self._presign(
            video_key,
            effective,
            content_type=mime,
            disposition=f'attachment; filename="{filename}"',
        )
        try:
            size = await asyncio.to_thread(self.storage.size, video_key)
        except S3StorageError as e:
            logger.warning("download: size lookup failed for %s: %s", video_key, e)
            size = None

        thumb = None
        if include_thumbnail and thumb_key:
            thumb = await self._download_thumbnail(thumb_key, row.get("title"), effective)

        expires_at = datetime.now(timezone.utc) + timedelta(seconds=effective)
        return {
            "video_id": row["id"],
            "title": row["title"],
            "genre": row["genre"],
            "description": row.get("description"),
            "duration": row.get("duration", 0),
            "duration_formatted": format_duration(row.get("duration")),
            "year": row.get("year"),
            "video": {
                "download_url": url,
                "filename": filename,
                "size": size,
                "mime_type": mime,
                "key": video_key,
            },
            "thumbnail": thumb,
            "expires_in": effective,
            "expires_at": expires_at.isoformat().replace("+00:00", "Z"),
        }

    async def _download_thumbnail(self, key: str, title: Optional[str], ttl: int) -> Optional[Row]:
        try:
            if not await asyncio.to_thread(self.storage.exists, key):
                return None
            mime = guess_image_mime(key)
            filename = slug_filename(title, key_extension(key), suffix="_thumb")
            url = self.storage.presigned_get(
                key,
                expires_in=ttl,
                response_content_type=mime,
                response_content_disposition=f'attachment; filename="{filename}"',
            )
            size = await asyncio.to_thread(self.storage.size, key)
        except S3StorageError as e:
            logger.warning("download: thumbnail skipped for %s: %s", key, e)
            return None
        return {"download_url": url, "filename": filename, "size": size, "mime_type": mime, "key": key}

    # ─────────────────────────────────────────────────────────
    # 📤 Uploads
    # ─────────────────────────────────────────────────────────
    def _file_errors(
        self,
        upload: Optional[UploadFile],
        field: str,
        *,
        allowed: frozenset,
        max_bytes: int,
        required: bool,
    ) -> List[str]:
        if upload is None or not upload.filename:
            return [f"The {field} field is required."] if required else []
        errors: List[str] = []
        ext = key_extension(upload.filename)
        if ext not in allowed:
            errors.append(f"The {field} must be a file of type: {', '.join(sorted(allowed))}.")
        if _upload_size(upload) > max_bytes:
            errors.append(f"The {field} may not be greater than {max_bytes // 1024} kilobytes.")
        return errors

    def _validate_files(self, video: Optional[UploadFile], thumbnail: Optional[UploadFile], *, required: bool) -> Dict[str, List[str]]:
        errors: Dict[str, List[str]] = {}
        v = self._file_errors(video, "video", allowed=VIDEO_UPLOAD_EXTENSIONS, max_bytes=self.max_video_bytes, required=required)
        t = self._file_errors(thumbnail, "thumbnail", allowed=IMAGE_UPLOAD_EXTENSIONS, max_bytes=self.max_thumbnail_bytes, required=required)
        if v:
            errors["video"] = v
        if t:
            errors["thumbnail"] = t
        return errors

    async def _store(self, upload: UploadFile, *, prefix: str) -> str:
        key = build_object_key(prefix, upload.filename)
        mime = guess_video_mime(key) if prefix == S3_PREFIX_VIDEOS else guess_image_mime(key)
        await upload.seek(0)
        return await self._io(self.storage.put_fileobj, key, upload.file, content_type=mime)

    async def _discard(self, key: Optional[str]) -> Optional[bool]:
        """Best-effort object delete. ``None`` means the store call failed."""
        if not key:
            return False
        try:
            return await asyncio.to_thread(self.storage.delete, key)
        except S3StorageError as e:
            logger.warning("object cleanup failed for %s: %s", key, e)
            return None

    async def create_from_upload(self, fields: Mapping[str, Any], video: Optional[UploadFile], thumbnail: Optional[UploadFile]) -> Row:
        errors: Dict[str, List[str]] = {}
        payload: Optional[VideoCreate] = None
        try:
            payload = parse_model(VideoCreate, fields)
        except ValidationException as exc:
            errors.update(exc.errors or {})
        errors.update(self._validate_files(video, thumbnail, required=True))
        if errors or payload is None:
            raise ValidationException(errors)

        thumb_key = await self._store(thumbnail, prefix=S3_PREFIX_THUMBNAILS)
        try:
            video_key = await self._store(video, prefix=S3_PREFIX_VIDEOS)
        except StorageException:
            await self._discard(thumb_key)
            raise

        created = await self.repo.create({**payload.to_row(), "video_key": video_key, "thumbnail_key": thumb_key})
        await self.cache.invalidate(created.id)
        logger.info("video %s created from direct upload", created.id)
        return self._detail(to_dict(created))

    async def upload_urls(self, req: UploadUrlsRequest, *, ttl: Any = None) -> Row:
        effective = clamp_upload_ttl(ttl if ttl is not None else settings.PRESIGN_UPLOAD_TTL)
        video_key = build_object_key(S3_PREFIX_VIDEOS, req.video_filename)
        thumb_key = build_object_key(S3_PREFIX_THUMBNAILS, req.thumb_filename)
        try:
            video_url = self.storage.presigned_put(video_key, content_type=req.content_type_video, expires_in=effective)
            thumb_url = self.storage.presigned_put(thumb_key, content_type=req.content_type_thumb, expires_in=effective)
        except S3StorageError as e:
            logger.error("presigned PUT failed: %s", e)
            raise StorageException("Failed to generate upload URLs") from e
        return {
            "video_upload_url": video_url,
            "thumb_upload_url": thumb_url,
            "video_key": video_key,
            "thumb_key": thumb_key,
            "expires_in": effective,
            "video_filename": req.video_filename,
            "thumb_filename": req.thumb_filename,
            "content_type_video": req.content_type_video,
            "content_type_thumb": req.content_type_thumb,
        }

    async def confirm_upload(self, req: ConfirmUploadRequest) -> Row:
        video_key = normalize_key(req.video_key, bucket=self.bucket)
        thumb_key = normalize_key(req.thumb_key, bucket=self.bucket)
        if not video_key or not await self._io(self.storage.exists, video_key):
            raise BadRequestException("Video upload not completed")
        if not thumb_key or not await self._io(self.storage.exists, thumb_key):
            raise BadRequestException("Thumbnail upload not completed")

        created = await self.repo.create({**req.to_row(), "video_key": video_key, "thumbnail_key": thumb_key})
        await self.cache.invalidate(created.id)
        logger.info("video %s created from confirmed upload", created.id)
        return self._detail(to_dict(created))

    # ─────────────────────────────────────────────────────────
    # ✏️ Update / Delete
    # ─────────────────────────────────────────────────────────
    async def update(
        self,
        video_id: int,
        fields: Mapping[str, Any],
        video: Optional[UploadFile] = None,
        thumbnail: Optional[UploadFile] = None,
    ) -> Row:
        """
        Partial update; either everything applies in one commit or nothing does.

        1) Validate every present field and file; any failure → 422.
        2) Nothing to change → 400.
        3) Upload replacements, drop superseded objects, commit, invalidate.
        """
        current = await self._model(video_id)

        errors: Dict[str, List[str]] = {}
        changes: Dict[str, Any] = {}
        try:
            changes = parse_model(VideoPatch, fields).changes()
        except ValidationException as exc:
            errors.update(exc.errors or {})
        errors.update(self._validate_files(video, thumbnail, required=False))
        if errors:
            raise ValidationException(errors)

        has_video = video is not None and bool(video.filename)
        has_thumb = thumbnail is not None and bool(thumbnail.filename)
        if not changes and not has_video and not has_thumb:
            raise BadRequestException("No valid fields to update")

        uploaded: List[str] = []
        try:
            if has_thumb:
                changes["thumbnail_key"] = await self._store(thumbnail, prefix=S3_PREFIX_THUMBNAILS)
                uploaded.append(changes["thumbnail_key"])
            if has_video:
                changes["video_key"] = await self._store(video, prefix=S3_PREFIX_VIDEOS)
                uploaded.append(changes["video_key"])
        except StorageException:
            for key in uploaded:
                await self._discard(key)
            raise

        if has_thumb:
            await self._discard(normalize_key(current.thumbnail_key, bucket=self.bucket))
        if has_video:
            await self._discard(normalize_key(current.video_key, bucket=self.bucket))

        updated = await self.repo.apply(current, changes)
        await self.cache.invalidate(video_id)
        logger.info("video %s updated: %s", video_id, sorted(changes))
        return self._detail(to_dict(updated))

    async def delete(self, video_id: int) -> Dict[str, str]:
        """Delete the row; object removal is best-effort and reported per asset."""
        current = await self._model(video_id)

        def _outcome(result: Optional[bool], key: Optional[str]) -> str:
            if not key:
                return "skipped"
            if result is None:
                return "failed"
            return "deleted" if result else "missing"

        video_key = normalize_key(current.video_key, bucket=self.bucket)
        thumb_key = normalize_key(current.thumbnail_key, bucket=self.bucket)
        cleanup = {
            "video": _outcome(await self._discard(video_key), video_key),
            "thumbnail": _outcome(await self._discard(thumb_key), thumb_key),
        }

        await self.repo.delete(video_id)
        await self.cache.invalidate(video_id)
        logger.info("video %s deleted (storage_cleanup=%s)", video_id, cleanup)
        return cleanup


__all__ = ["CatalogService", "format_duration", "duration_minutes"]
