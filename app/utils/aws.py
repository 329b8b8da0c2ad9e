# app/utils/aws.py
from __future__ import annotations

"""
🧊 FlixCatalog • S3 client
==========================

Thin boto3 wrapper bound to the catalog bucket.

- `presigned_get` / `presigned_put`: SigV4 URLs from `generate_presigned_url`.
  Read TTLs are clamped to [60, 3600] s, upload TTLs to at most 1800 s.
- `put_fileobj`: server-side upload for the multipart admin endpoint.
- `head` / `exists` / `size`: HEAD-based probes (None/False when absent).
- `delete`: idempotent; False when nothing was there.

All methods are synchronous like boto3 itself; the catalog service runs them
through `asyncio.to_thread`. Any transport, credential or permission failure
surfaces as `S3StorageError`.
"""

from contextlib import contextmanager
from typing import Any, BinaryIO, Dict, Iterator, Optional
import logging
import re

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from app.core.storage import StorageConfig, clamp_read_ttl, clamp_upload_ttl

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"[A-Za-z0-9._\-/+=@() %]+")
_MISSING = frozenset({"404", "NoSuchKey", "NotFound"})


class S3StorageError(RuntimeError):
    """A storage call failed or was refused before reaching S3."""


def _checked_key(key: str) -> str:
    k = re.sub(r"/{2,}", "/", str(key or "").strip().lstrip("/"))
    if not k:
        raise S3StorageError("Invalid storage key: empty")
    if ".." in k.split("/"):
        raise S3StorageError("Invalid storage key: path traversal detected")
    if not _SAFE_KEY.fullmatch(k):
        raise S3StorageError("Invalid storage key: contains forbidden characters")
    return k


def _is_missing(exc: ClientError) -> bool:
    return str(exc.response.get("Error", {}).get("Code", "")) in _MISSING


@contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    try:
        yield
    except (BotoCoreError, ClientError) as exc:
        logger.warning("S3 %s failed: %s", action, exc)
        raise S3StorageError(f"Failed to {action}: {exc}") from exc


class S3Client:
    """Operations on one bucket.

    Explicit access keys from `StorageConfig` win; otherwise boto3's default
    credential chain applies. `use_path_style` switches to path addressing
    for S3-compatible endpoints such as MinIO.
    """

    def __init__(self, config: StorageConfig) -> None:
        if not config.bucket:
            raise S3StorageError("AWS_BUCKET_NAME not configured")
        self.config = config
        self.bucket = config.bucket

        kwargs: Dict[str, Any] = {
            "region_name": config.region,
            "config": BotoConfig(
                signature_version="s3v4",
                retries={"max_attempts": config.max_attempts, "mode": "standard"},
                connect_timeout=config.connect_timeout,
                read_timeout=config.read_timeout,
                s3={"addressing_style": "path" if config.use_path_style else "virtual"},
            ),
        }
        if config.endpoint_url:
            kwargs["endpoint_url"] = config.endpoint_url
        if config.access_key_id and config.secret_access_key:
            kwargs.update(
                aws_access_key_id=config.access_key_id,
                aws_secret_access_key=config.secret_access_key,
                aws_session_token=config.session_token or None,
            )

        with _storage_errors("create S3 client"):
            self.client = boto3.client("s3", **kwargs)

    def __repr__(self) -> str:  # pragma: no cover
        return f"S3Client(bucket={self.bucket!r}, region={self.config.region!r})"

    # ── signing ──────────────────────────────────────────────
    def _sign(self, method: str, params: Dict[str, Any], ttl: int, http_method: Optional[str] = None) -> str:
        extra = {"HttpMethod": http_method} if http_method else {}
        with _storage_errors(f"presign {method}"):
            url = self.client.generate_presigned_url(ClientMethod=method, Params=params, ExpiresIn=ttl, **extra)
        if not url:
            raise S3StorageError(f"Failed to presign {method}: empty URL")
        return url

    def presigned_get(
        self,
        key: str,
        *,
        expires_in: int = 600,
        response_content_type: Optional[str] = None,
        response_content_disposition: Optional[str] = None,
    ) -> str:
        """Short-lived GET URL; optional overrides for the served headers."""
        params: Dict[str, Any] = {"Bucket": self.bucket, "Key": _checked_key(key)}
        if response_content_type:
            params["ResponseContentType"] = response_content_type
        if response_content_disposition:
            params["ResponseContentDisposition"] = response_content_disposition
        return self._sign("get_object", params, clamp_read_ttl(expires_in))

    def presigned_put(self, key: str, *, content_type: str, expires_in: int = 1800) -> str:
        """PUT URL for direct uploads; the client must send the same Content-Type."""
        params = {"Bucket": self.bucket, "Key": _checked_key(key), "ContentType": content_type}
        return self._sign("put_object", params, clamp_upload_ttl(expires_in), http_method="PUT")

    # ── objects ──────────────────────────────────────────────
    def put_fileobj(self, key: str, fileobj: BinaryIO, *, content_type: str) -> str:
        k = _checked_key(key)
        with _storage_errors("upload object"):
            self.client.upload_fileobj(fileobj, self.bucket, k, ExtraArgs={"ContentType": content_type})
        return k

    def head(self, key: str) -> Optional[Dict[str, Any]]:
        """Object metadata, or None when the object does not exist."""
        k = _checked_key(key)
        with _storage_errors("HEAD object"):
            try:
                return dict(self.client.head_object(Bucket=self.bucket, Key=k) or {})
            except ClientError as exc:
                if _is_missing(exc):
                    return None
                raise

    def exists(self, key: str) -> bool:
        return self.head(key) is not None

    def size(self, key: str) -> Optional[int]:
        length = (self.head(key) or {}).get("ContentLength")
        return int(length) if length is not None else None

    def delete(self, key: Optional[str]) -> bool:
        """Remove one object. Blank keys and absent objects return False."""
        if not key or not str(key).strip():
            return False
        k = _checked_key(key)
        if self.head(k) is None:
            return False
        with _storage_errors("delete object"):
            try:
                self.client.delete_object(Bucket=self.bucket, Key=k)
            except ClientError as exc:
                if _is_missing(exc):
                    return False
                raise
        return True


__all__ = ["S3Client", "S3StorageError"]
