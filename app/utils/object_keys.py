# app/utils/object_keys.py
from __future__ import annotations

"""
Object key helpers
==================

Stored media references may be bare keys (``videos/abc.mp4``) or full URLs in
either S3 addressing style:

- path style:    ``https://s3.eu-west-1.example.com/{bucket}/videos/abc.mp4``
- virtual host:  ``https://{bucket}.s3.eu-west-1.example.com/videos/abc.mp4``

`normalize_key` maps all of them to the canonical bucket-relative key. The
addressing style is inferred from whether the path starts with the bucket
name, so callers never pass a flag.
"""

import re
import uuid
from typing import Optional
from urllib.parse import urlsplit

from app.api.http_utils import sanitize_filename

_URL_PREFIX_RE = re.compile(r"^https?://", re.IGNORECASE)


def normalize_key(raw: Optional[str], *, bucket: Optional[str] = None) -> Optional[str]:
    """Return the canonical object key for ``raw`` or ``None``.

    Never raises. Idempotent for anything it returns.

    >>> normalize_key("/videos/a.mp4")
    'videos/a.mp4'
    >>> normalize_key("https://s3.example.com/media/videos/a.mp4", bucket="media")
    'videos/a.mp4'
    >>> normalize_key("https://media.s3.example.com/videos/a.mp4", bucket="media")
    'videos/a.mp4'
    """
    if raw is None:
        return None
    value = str(raw).strip()
    if not value:
        return None

    if not _URL_PREFIX_RE.match(value):
        key = value.lstrip("/")
        return key or None

    try:
        path = urlsplit(value).path
    except ValueError:
        return None
    if not path:
        return None

    path = path.lstrip("/")
    if bucket and path.startswith(f"{bucket}/"):
        path = path[len(bucket) + 1:]
    return path or None


def build_object_key(prefix: str, filename: Optional[str], *, fallback: str = "file.bin") -> str:
    """Return ``{prefix}/{uuid-hex}_{safe filename}``.

    The random component keeps two uploads of the same filename apart.
    """
    safe = sanitize_filename(filename, fallback=fallback)
    return f"{prefix.strip('/')}/{uuid.uuid4().hex}_{safe}"


def key_extension(key: Optional[str], *, default: str = "") -> str:
    """Lower-cased extension of ``key`` without the dot (``default`` if none)."""
    if not key:
        return default
    tail = key.rsplit("/", 1)[-1]
    if "." not in tail:
        return default
    ext = tail.rsplit(".", 1)[-1].lower()
    return ext or default


__all__ = ["normalize_key", "build_object_key", "key_extension"]
