# app/core/security.py
from __future__ import annotations

"""
FlixCatalog — Authentication & Security Helpers
===============================================
- Password hashing (passlib bcrypt)
- Access-token creation (JWT with `jti`) + Redis allow-list registration
- FastAPI dependency resolving the **current user** from a Bearer token

Decoding is delegated to `app.core.jwt`.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import uuid4
import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import InvalidTokenException
from app.core.jwt import access_jti_key, decode_access_token, user_access_set_key
from app.core.redis_client import redis_wrapper
from app.db.models.user import User
from app.db.session import get_async_db

# ───────────────────────────────────────────────
# 🔐 Security Constants and Setup
# ───────────────────────────────────────────────
ALGORITHM: str = settings.JWT_ALGORITHM

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)
security = HTTPBearer(auto_error=False)
logger = logging.getLogger("security")


# ───────────────────────────────────────────────
# 🔐 Password Hashing Utilities
# ───────────────────────────────────────────────
def get_password_hash(password: str) -> str:
    """Return a salted hash using Passlib's bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Constant-time verify of a plaintext password against a stored hash."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Unrecognized / malformed hash
        return False


# ───────────────────────────────────────────────
# 🪪 JWT — Access Token Generation
# ───────────────────────────────────────────────
@dataclass(frozen=True)
class IssuedAccessToken:
    token: str
    jti: str
    expires_in: int


async def create_access_token(user_id: Any, expires_delta: Optional[timedelta] = None) -> IssuedAccessToken:
    """Create a signed **access token** and put its JTI on the allow-list.

    The JTI is also added to the per-user set so every live token of a user
    can be revoked at once.
    """
    now = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = now + lifetime
    jti = str(uuid4())

    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "exp": expire,
        "iat": now,
        "nbf": now,
        "jti": jti,
        "token_type": "access",
    }
    token = jwt.encode(payload, settings.JWT_SECRET_KEY.get_secret_value(), algorithm=ALGORITHM)

    ttl_seconds = int(lifetime.total_seconds())
    client = redis_wrapper.client
    await client.setex(access_jti_key(jti), ttl_seconds, str(user_id))
    await client.sadd(user_access_set_key(user_id), jti)
    await client.expire(user_access_set_key(user_id), ttl_seconds)
    logger.debug("Stored access JTI %s (ttl=%ss)", jti, ttl_seconds)

    return IssuedAccessToken(token=token, jti=jti, expires_in=ttl_seconds)


# ───────────────────────────────────────────────
# 👤 Dependency — Get Current User
# ───────────────────────────────────────────────
async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_async_db),
) -> User:
    """Authenticate a user from the presented **access** token.

    Steps:
    1) Decode & validate JWT (allow-list, expiry, type) via `app.core.jwt`.
    2) Load user from DB.
    3) Attach the payload to `request.state` (logout needs the JTI).
    """
    if credentials is None or not credentials.credentials:
        raise InvalidTokenException()

    payload = await decode_access_token(credentials.credentials)
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise InvalidTokenException()

    user = (await db.execute(select(User).where(User.id == user_id))).scalars().first()
    if user is None:
        raise InvalidTokenException()

    request.state.user_id = user.id
    request.state.token_payload = payload
    return user


__all__ = [
    "pwd_context",
    "get_password_hash",
    "verify_password",
    "IssuedAccessToken",
    "create_access_token",
    "get_current_user",
]
