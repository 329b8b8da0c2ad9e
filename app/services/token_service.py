# app/services/token_service.py

from __future__ import annotations

"""
FlixCatalog — Token Service
===========================
- Refresh tokens: opaque secrets stored as SHA-256 digests (no raw tokens at rest)
- Access tokens: Redis allow-list revocation (single token / every token of a user)
- Expiry sweep for refresh tokens

Notes:
- Expiry checks live in the WHERE clause against a UTC timestamp, so an
  expired row is never loaded just to be rejected.
- Uses the shared Redis wrapper (`app.core.redis_client.redis_wrapper`).
"""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Set, Tuple

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.jwt import access_jti_key, user_access_set_key
from app.core.redis_client import redis_wrapper
from app.db.models.token import RefreshToken

logger = logging.getLogger("auth.token")

REFRESH_SECRET_BYTES = 64
DEVICE_NAME_MAX = 255


def hash_refresh_secret(secret: str) -> str:
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Byte → str normalization for redis responses
def _b2s(value) -> str:
    return value.decode() if isinstance(value, (bytes, bytearray)) else str(value)


# ──────────────────────────────────────────────────────────────────────────────
# 🔐 Refresh tokens
# ──────────────────────────────────────────────────────────────────────────────
async def issue_refresh_token(
    db: AsyncSession,
    user_id: int,
    *,
    device_name: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> Tuple[str, RefreshToken]:
    """
    Mint a refresh secret and persist its **digest** for a user.

    Returns the plaintext secret (shown to the client exactly once) and the row.
    """
    secret = secrets.token_urlsafe(REFRESH_SECRET_BYTES)
    entry = RefreshToken(
        user_id=user_id,
        token_hash=hash_refresh_secret(secret),
        device_name=(device_name or "")[:DEVICE_NAME_MAX] or None,
        ip_address=ip_address,
        expires_at=_utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )
    db.add(entry)
    await db.commit()
    return secret, entry


async def find_active_refresh_token(db: AsyncSession, secret: str) -> Optional[RefreshToken]:
    """Return the unexpired row matching ``secret`` or None."""
    if not secret:
        return None
    stmt = select(RefreshToken).where(
        RefreshToken.token_hash == hash_refresh_secret(secret),
        RefreshToken.expires_at > _utcnow(),
    )
    return (await db.execute(stmt)).scalars().first()


async def touch_refresh_token(db: AsyncSession, token_id: int) -> None:
    await db.execute(
        update(RefreshToken).where(RefreshToken.id == token_id).values(last_used_at=_utcnow())
    )
    await db.commit()


async def delete_refresh_token(db: AsyncSession, user_id: int, secret: str) -> bool:
    """Delete one refresh token, only if it belongs to ``user_id``."""
    result = await db.execute(
        delete(RefreshToken).where(
            RefreshToken.user_id == user_id,
            RefreshToken.token_hash == hash_refresh_secret(secret),
        )
    )
    await db.commit()
    return bool(result.rowcount)


async def revoke_all_refresh_tokens(db: AsyncSession, user_id: int) -> int:
    """Delete **all** refresh tokens of a user. Returns the number removed."""
    result = await db.execute(delete(RefreshToken).where(RefreshToken.user_id == user_id))
    await db.commit()
    revoked = result.rowcount or 0
    logger.debug("🔒 Revoked all refresh tokens for user=%s (count=%s)", user_id, revoked)
    return revoked


async def purge_expired_refresh_tokens(db: AsyncSession) -> int:
    """Expiry sweep: delete refresh tokens whose `expires_at` has passed."""
    result = await db.execute(delete(RefreshToken).where(RefreshToken.expires_at <= _utcnow()))
    await db.commit()
    return result.rowcount or 0


# ──────────────────────────────────────────────────────────────────────────────
# 🪪 Access tokens (Redis allow-list)
# ──────────────────────────────────────────────────────────────────────────────
async def _user_access_jtis(user_id: Any) -> Set[str]:
    members = await redis_wrapper.client.smembers(user_access_set_key(user_id))
    return {_b2s(m) for m in (members or set())}


async def revoke_access_token(user_id: Any, jti: str) -> None:
    """Take one access token off the allow-list."""
    client = redis_wrapper.client
    await client.delete(access_jti_key(jti))
    await client.srem(user_access_set_key(user_id), jti)


async def revoke_all_access_tokens(user_id: Any) -> int:
    """Take every access token of a user off the allow-list."""
    client = redis_wrapper.client
    jtis = await _user_access_jtis(user_id)
    if jtis:
        await client.delete(*(access_jti_key(j) for j in jtis))
    await client.delete(user_access_set_key(user_id))
    logger.debug("🔒 Revoked %s access tokens for user=%s", len(jtis), user_id)
    return len(jtis)


__all__ = [
    "hash_refresh_secret",
    "issue_refresh_token",
    "find_active_refresh_token",
    "touch_refresh_token",
    "delete_refresh_token",
    "revoke_all_refresh_tokens",
    "purge_expired_refresh_tokens",
    "revoke_access_token",
    "revoke_all_access_tokens",
]
