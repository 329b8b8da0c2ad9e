# app/services/auth/login_service.py
from __future__ import annotations

"""
Login service — FlixCatalog
===========================

What this module provides
-------------------------
- **Username + password login** with a neutral error on any mismatch.
- **Single active session**: every successful login (and registration) first
  revokes all of the user's access tokens and refresh tokens.
- **Token refresh**: a valid refresh secret mints a new access token; the
  user's previous access tokens are revoked and the refresh token is kept.

Token lifetimes
---------------
- Access: `ACCESS_TOKEN_EXPIRE_MINUTES` (15) — JWT on the Redis allow-list.
- Refresh: `REFRESH_TOKEN_EXPIRE_DAYS` (30) — opaque secret, stored hashed.
"""

import logging
from typing import Optional

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.http_utils import get_client_ip
from app.core.exceptions import AuthException
from app.core.security import create_access_token, verify_password
from app.db.models.user import User
from app.schemas.auth import LoginRequest, RefreshResponse, TokenResponse, UserOut
from app.services.token_service import (
    find_active_refresh_token,
    issue_refresh_token,
    revoke_all_access_tokens,
    revoke_all_refresh_tokens,
    touch_refresh_token,
)

logger = logging.getLogger("auth.login")


def _device_name(request: Optional[Request]) -> str:
    if request is None:
        return "Unknown Device"
    return request.headers.get("User-Agent") or "Unknown Device"


# ─────────────────────────────────────────────────────────────
# 🔑 Session issuance (shared by login & registration)
# ─────────────────────────────────────────────────────────────
async def start_session(db: AsyncSession, user: User, request: Optional[Request], *, message: str) -> TokenResponse:
    """
    Revoke every existing credential of ``user`` and issue a fresh pair.

    Steps
    -----
    1) Drop all access-token registrations and refresh rows for the user.
    2) Mint a refresh secret (persisted hashed, with device/IP metadata).
    3) Mint an access token and register its JTI.
    """
    await revoke_all_access_tokens(user.id)
    await revoke_all_refresh_tokens(db, user.id)

    refresh_secret, _ = await issue_refresh_token(
        db,
        user.id,
        device_name=_device_name(request),
        ip_address=get_client_ip(request) if request is not None else None,
    )
    access = await create_access_token(user.id)

    return TokenResponse(
        message=message,
        user=UserOut(**user.public_dict()),
        access_token=access.token,
        refresh_token=refresh_secret,
        expires_in=access.expires_in,
    )


# ─────────────────────────────────────────────────────────────
# 🔐 Username + Password login
# ─────────────────────────────────────────────────────────────
async def login_user(payload: LoginRequest, db: AsyncSession, request: Optional[Request] = None) -> TokenResponse:
    """
    Authenticate by username and password and start a new session.

    Unknown usernames and wrong passwords produce the same 401.
    """
    username = payload.username.strip()
    user = (await db.execute(select(User).where(User.username == username))).scalars().first()
    if user is None or not verify_password(payload.password, user.password_hash):
        logger.info("Failed login attempt for username=%r", username)
        raise AuthException("Invalid credentials")

    response = await start_session(db, user, request, message="Login successful")
    logger.info("User %s logged in", user.id)
    return response


# ─────────────────────────────────────────────────────────────
# 🔄 Refresh
# ─────────────────────────────────────────────────────────────
async def refresh_access_token(refresh_secret: str, db: AsyncSession) -> RefreshResponse:
    """
    Exchange a refresh secret for a new access token.

    - Unknown or expired secret → 401.
    - All current access tokens of the user are revoked first.
    - The refresh token itself stays valid; its `last_used_at` is touched.
    """
    row = await find_active_refresh_token(db, refresh_secret)
    if row is None:
        raise AuthException("Invalid or expired refresh token")

    user_id = row.user_id
    await revoke_all_access_tokens(user_id)
    access = await create_access_token(user_id)
    await touch_refresh_token(db, row.id)

    return RefreshResponse(access_token=access.token, expires_in=access.expires_in)


__all__ = ["start_session", "login_user", "refresh_access_token"]
