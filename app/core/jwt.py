# app/core/jwt.py
from __future__ import annotations

"""
FlixCatalog — JWT helpers
=========================
- `decode_token`: signature + standard claims (exp/nbf/iat), `sub`/`jti`
  presence, optional `token_type` enforcement
- Redis **allow-list** lane: an access token is valid only while
  `access:jti:{jti}` exists. Revoking = deleting that key
  (see `app.services.token_service`).

Notes
-----
- Token *creation* lives in `app.core.security`.
- Redis being unreachable during the allow-list check fails closed (503).
"""

from typing import Any, Dict, Optional, Sequence
import logging

from fastapi import status
from jose import ExpiredSignatureError, JWTError, jwt
from redis.exceptions import RedisError

from app.core.config import settings
from app.core.exceptions import AppException, InvalidTokenException
from app.core.redis_client import redis_wrapper

logger = logging.getLogger("auth")


def access_jti_key(jti: str) -> str:
    return f"access:jti:{jti}"


def user_access_set_key(user_id: Any) -> str:
    return f"access:user:{user_id}"


# ─────────────────────────────────────────────────────────────
# 🔧 Internal helpers
# ─────────────────────────────────────────────────────────────
async def _is_registered(jti: str) -> bool:
    """Return True while the JTI is on the access allow-list."""
    try:
        return bool(await redis_wrapper.client.exists(access_jti_key(jti)))
    except (RedisError, RuntimeError) as e:
        logger.error("Redis unavailable during token check (fail-closed): %s", e)
        raise AppException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            message="Auth service temporarily unavailable.",
        )


# ─────────────────────────────────────────────────────────────
# 🔓 Decode JWT with allow-list check (async)
# ─────────────────────────────────────────────────────────────
async def decode_token(
    token: str,
    *,
    expected_types: Optional[Sequence[str]] = None,
    verify_registration: bool = True,
) -> Dict[str, Any]:
    """Decode and validate a JWT.

    Security checks
    ---------------
    1) Verify signature and standard claims (exp/nbf/iat)
    2) Require `sub` and `jti`
    3) Optional `token_type` membership
    4) Consult the Redis allow-list

    Raises
    ------
    InvalidTokenException
        401 for invalid/expired/revoked tokens or type mismatch.
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        logger.info("Token expired.")
        raise InvalidTokenException()
    except JWTError as e:
        logger.warning("JWT decoding failed: %s", e)
        raise InvalidTokenException()

    if not payload.get("sub"):
        logger.warning("Missing sub in token payload.")
        raise InvalidTokenException()

    jti = payload.get("jti")
    if not jti:
        logger.warning("Missing JTI in token.")
        raise InvalidTokenException()

    if expected_types is not None and payload.get("token_type") not in set(expected_types):
        logger.warning("Token type mismatch: got %r", payload.get("token_type"))
        raise InvalidTokenException()

    if verify_registration and not await _is_registered(jti):
        logger.info("Token with JTI %s is not active (revoked or superseded).", jti)
        raise InvalidTokenException()

    return payload


async def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode an **access** token (enforces `token_type == 'access'`)."""
    return await decode_token(token, expected_types=["access"], verify_registration=True)


__all__ = [
    "access_jti_key",
    "user_access_set_key",
    "decode_token",
    "decode_access_token",
]
