from __future__ import annotations

"""
FlixCatalog · HTTP Utilities
============================

Shared helpers for API routers:

- Client IP resolution (proxy-aware, opt-in)
- Safe filename sanitization and title → download filename slugs
- Loose boolean coercion for form/query flags
- `{success, message?, data?}` JSON envelope with optional `no-store`

Notes
-----
• All helpers are side-effect free and fast.
"""

import ipaddress
import os
import re
from types import MappingProxyType
from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from slugify import slugify

__all__ = [
    "sanitize_filename",
    "slug_filename",
    "get_client_ip",
    "coerce_bool",
    "envelope",
]

_TRUE_VALUES = {True, 1, "1", "true"}
_FALSE_VALUES = {False, 0, "0", "false"}


# ─────────────────────────────────────────────────────────────────────────────
# 🌐 Client IP
# ─────────────────────────────────────────────────────────────────────────────

def _parse_ip(value: Optional[str]) -> Optional[str]:
    """Parse an IP (v4/v6) possibly containing zone IDs or ports; return None if invalid."""
    if not value:
        return None
    value = value.split("%", 1)[0].strip()
    if value.startswith("["):
        host = value.split("]", 1)[0].lstrip("[")
    else:
        # Split off port only if it's ipv4:port form (one ':')
        host = value.split(":")[0] if value.count(":") == 1 else value
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return None
    return host


def get_client_ip(request: Request) -> Optional[str]:
    """Best-guess client IP for token metadata and rate limiting.

    • By default, uses the socket peer address.
    • With ``TRUST_FORWARD_HEADERS=1``, consults ``X-Real-Ip`` then the first
      hop of ``X-Forwarded-For``.
    """
    peer = request.client.host if request.client and request.client.host else None
    peer_ip = _parse_ip(peer) or peer

    if os.environ.get("TRUST_FORWARD_HEADERS") not in {"1", "true", "True"}:
        return peer_ip

    headers = MappingProxyType({k.lower(): v for k, v in request.headers.items()})
    ip = _parse_ip(headers.get("x-real-ip"))
    if ip:
        return ip
    xff = headers.get("x-forwarded-for")
    if xff:
        ip = _parse_ip(xff.split(",")[0].strip())
        if ip:
            return ip
    return peer_ip


# ─────────────────────────────────────────────────────────────────────────────
# 📄 Filenames
# ─────────────────────────────────────────────────────────────────────────────

def sanitize_filename(name: Optional[str], fallback: str = "download.bin") -> str:
    """Return a safe filename limited to ``[A-Za-z0-9._-]`` and underscores for spaces.

    >>> sanitize_filename("  My File (Final).mp4  ")
    'My_File_Final.mp4'
    >>> sanitize_filename("", fallback="file.bin")
    'file.bin'
    """
    s = (name or "").strip()
    if not s:
        return fallback
    s = re.sub(r"\s+", "_", s)
    s = re.sub(r"[^A-Za-z0-9._-]", "", s)
    s = s.lstrip(".")
    return s or fallback


def slug_filename(title: Optional[str], ext: str, *, suffix: str = "", fallback: str = "video") -> str:
    """``"My Movie!"``, ``"mp4"`` → ``"my-movie.mp4"``; ``suffix="_thumb"`` → ``"my-movie_thumb.mp4"``."""
    base = slugify(title or "") or fallback
    ext = (ext or "").lstrip(".").lower()
    return f"{base}{suffix}.{ext}" if ext else f"{base}{suffix}"


# ─────────────────────────────────────────────────────────────────────────────
# 🔘 Flags
# ─────────────────────────────────────────────────────────────────────────────

def coerce_bool(value: Any) -> Optional[bool]:
    """Map {true,"true",1,"1"} → True and {false,"false",0,"0"} → False; anything else → None."""
    if isinstance(value, str):
        value = value.strip().lower()
    elif not isinstance(value, int):
        return None
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return None


# ─────────────────────────────────────────────────────────────────────────────
# 📦 Envelope
# ─────────────────────────────────────────────────────────────────────────────

def envelope(
    data: Any = None,
    *,
    message: Optional[str] = None,
    status_code: int = 200,
    no_store: bool = False,
    **extra: Any,
) -> JSONResponse:
    """Return ``{"success": true, "message"?, "data"?, **extra}``.

    `no_store` marks responses carrying signed URLs as non-cacheable.
    """
    content: dict = {"success": True}
    if message is not None:
        content["message"] = message
    if data is not None:
        content["data"] = data
    content.update(extra)
    resp = JSONResponse(content=content, status_code=status_code)
    if no_store:
        resp.headers["Cache-Control"] = "no-store"
        resp.headers["Pragma"] = "no-cache"
    return resp
