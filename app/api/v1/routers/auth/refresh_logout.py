# app/api/v1/routers/auth/refresh_logout.py

"""
Refresh & Logout API — FlixCatalog
==================================

Endpoints
---------
POST /refresh
    Exchange a refresh token for a new access token. The user's previous
    access tokens are revoked; the refresh token itself stays valid.

POST /logout
    Revoke the access token used for this request and, when supplied, the
    given refresh token (only if it belongs to the caller).

POST /logout-all
    Revoke every access token and refresh token of the caller.

Security
--------
- `Cache-Control: no-store` on every response here.
- Refresh is rate limited with `RATE_LIMIT_AUTH`; logout routes require a
  valid bearer token.
"""

# ──────────────────────────────────────────────────────────────────────────────
# 📦 Imports
# ──────────────────────────────────────────────────────────────────────────────

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.limiter import rate_limit
from app.core.security import get_current_user
from app.db.models.user import User
from app.db.session import get_async_db
from app.schemas.auth import LogoutRequest, MessageResponse, RefreshResponse, RefreshTokenRequest
from app.security_headers import set_sensitive_cache
from app.services.auth.login_service import refresh_access_token
from app.services.auth.logout_service import logout_all_sessions, logout_user

router = APIRouter(tags=["Tokens & Sessions"])
logger = logging.getLogger("flixcatalog.auth.refresh_logout")


# ──────────────────────────────────────────────────────────────────────────────
# 🔄 POST /refresh
# ──────────────────────────────────────────────────────────────────────────────

@router.post("/refresh", response_model=RefreshResponse, summary="Mint a new access token")
@rate_limit(settings.RATE_LIMIT_AUTH)
async def refresh_token(
    payload: RefreshTokenRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_async_db),
) -> RefreshResponse:
    set_sensitive_cache(response)
    return await refresh_access_token(payload.refresh_token, db)


# ──────────────────────────────────────────────────────────────────────────────
# 🚪 POST /logout
# ──────────────────────────────────────────────────────────────────────────────

@router.post("/logout", response_model=MessageResponse, summary="Log out this session")
async def logout(
    request: Request,
    response: Response,
    payload: Optional[LogoutRequest] = Body(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> MessageResponse:
    set_sensitive_cache(response)
    token_payload = getattr(request.state, "token_payload", None) or {}
    await logout_user(db, current_user, token_payload, payload.refresh_token if payload else None)
    return MessageResponse(message="Logged out successfully")


# ──────────────────────────────────────────────────────────────────────────────
# 🚪 POST /logout-all
# ──────────────────────────────────────────────────────────────────────────────

@router.post("/logout-all", response_model=MessageResponse, summary="Log out from all devices")
async def logout_all(
    response: Response,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> MessageResponse:
    set_sensitive_cache(response)
    await logout_all_sessions(db, current_user)
    return MessageResponse(message="Logged out from all devices")


__all__ = ["router", "refresh_token", "logout", "logout_all"]
