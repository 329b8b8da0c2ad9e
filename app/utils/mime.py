# app/utils/mime.py
from __future__ import annotations

"""Extension → Content-Type tables for presigned media responses."""

from typing import Dict, FrozenSet, Optional

from app.utils.object_keys import key_extension

VIDEO_FALLBACK_MIME = "application/octet-stream"
IMAGE_FALLBACK_MIME = "image/jpeg"

VIDEO_MIME_TYPES: Dict[str, str] = {
    "mp4": "video/mp4",
    "m4v": "video/x-m4v",
    "mkv": "video/x-matroska",
    "webm": "video/webm",
    "avi": "video/x-msvideo",
    "mov": "video/quicktime",
    "3gp": "video/3gpp",
    "ts": "video/mp2t",
    "flv": "video/x-flv",
}

IMAGE_MIME_TYPES: Dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
}

# Accepted on direct multipart upload
VIDEO_UPLOAD_EXTENSIONS: FrozenSet[str] = frozenset(VIDEO_MIME_TYPES)
IMAGE_UPLOAD_EXTENSIONS: FrozenSet[str] = frozenset(IMAGE_MIME_TYPES)


def guess_video_mime(key: Optional[str]) -> str:
    return VIDEO_MIME_TYPES.get(key_extension(key), VIDEO_FALLBACK_MIME)


def guess_image_mime(key: Optional[str]) -> str:
    return IMAGE_MIME_TYPES.get(key_extension(key), IMAGE_FALLBACK_MIME)


__all__ = [
    "VIDEO_MIME_TYPES",
    "IMAGE_MIME_TYPES",
    "VIDEO_UPLOAD_EXTENSIONS",
    "IMAGE_UPLOAD_EXTENSIONS",
    "guess_video_mime",
    "guess_image_mime",
]
