from __future__ import annotations

"""
FlixCatalog • Object Storage Configuration & Layout
===================================================

Key layout (single private bucket):

    s3://{bucket}/
      videos/{uuid}_{filename.ext}
      thumbnails/{uuid}_{filename.ext}

All objects are private; clients reach them through presigned URLs only.

`StorageConfig` is built once at startup from `settings` and handed to
`S3Client`; nothing below the app factory reads the environment for storage.
"""

from dataclasses import dataclass
from typing import Any, Optional

from app.core.config import Settings


S3_PREFIX_VIDEOS = "videos"
S3_PREFIX_THUMBNAILS = "thumbnails"

READ_TTL_MIN = 60
READ_TTL_MAX = 3600
READ_TTL_DEFAULT = 600
UPLOAD_TTL_MAX = 1800


def clamp_read_ttl(ttl: Any, *, default: int = READ_TTL_DEFAULT) -> int:
    """Clamp a requested read-presign TTL into ``[60, 3600]``.

    Non-numeric or missing values fall back to ``default`` (itself clamped).
    Saturates outside the range and is monotonic inside it.
    """
    try:
        value = int(ttl)
    except (TypeError, ValueError):
        value = int(default)
    if value < READ_TTL_MIN:
        return READ_TTL_MIN
    if value > READ_TTL_MAX:
        return READ_TTL_MAX
    return value


def clamp_upload_ttl(ttl: Any) -> int:
    """Upload presigns never outlive 30 minutes (and never drop below a minute)."""
    try:
        value = int(ttl)
    except (TypeError, ValueError):
        value = UPLOAD_TTL_MAX
    return max(READ_TTL_MIN, min(value, UPLOAD_TTL_MAX))


@dataclass(frozen=True)
class StorageConfig:
    """Immutable object-store connection settings."""

    bucket: str
    region: str = "us-east-1"
    endpoint_url: Optional[str] = None
    use_path_style: bool = False
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    session_token: Optional[str] = None
    connect_timeout: int = 3
    read_timeout: int = 10
    max_attempts: int = 1

    @classmethod
    def from_settings(cls, s: Settings) -> "StorageConfig":
        secret = s.AWS_SECRET_ACCESS_KEY.get_secret_value() if s.AWS_SECRET_ACCESS_KEY else None
        session = s.AWS_SESSION_TOKEN.get_secret_value() if s.AWS_SESSION_TOKEN else None
        return cls(
            bucket=s.AWS_BUCKET_NAME or "",
            region=s.AWS_REGION,
            endpoint_url=s.AWS_ENDPOINT_URL,
            use_path_style=s.AWS_USE_PATH_STYLE_ENDPOINT,
            access_key_id=s.AWS_ACCESS_KEY_ID,
            secret_access_key=secret,
            session_token=session,
            connect_timeout=s.S3_CONNECT_TIMEOUT,
            read_timeout=s.S3_READ_TIMEOUT,
            max_attempts=s.S3_MAX_ATTEMPTS,
        )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"StorageConfig(bucket={self.bucket!r}, region={self.region!r}, "
            f"endpoint={'yes' if self.endpoint_url else 'no'}, path_style={self.use_path_style})"
        )
