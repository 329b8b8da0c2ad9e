# app/api/v1/routers/auth/login.py
from __future__ import annotations

"""
Authentication API — FlixCatalog
================================

Endpoints
---------
POST /login
    Username + password sign-in. Returns access + refresh tokens and the
    user's public profile. Any previous session of the user is revoked.

Security & DX
-------------
- **Route rate limit** from `RATE_LIMIT_AUTH`.
- **Sensitive cache headers** on token-issuing routes (no-store).
- **Auth logic delegated** to `app.services.auth.login_service`.
- Neutral errors: unknown user and wrong password look the same.

Notes
-----
- We return Pydantic models directly so headers set on `response` (e.g.,
  `Cache-Control: no-store`) are preserved by FastAPI.
"""

from fastapi import APIRouter, Body, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.limiter import rate_limit
from app.db.session import get_async_db
from app.schemas.auth import LoginRequest, TokenResponse
from app.security_headers import set_sensitive_cache
from app.services.auth.login_service import login_user

router = APIRouter(tags=["Authentication"])


# ──────────────────────────────────────────────────────────────
# 🔐 POST /login — Username + Password
# ──────────────────────────────────────────────────────────────
@router.post("/login", response_model=TokenResponse, summary="Username + password login")
@rate_limit(settings.RATE_LIMIT_AUTH)
async def login(
    request: Request,
    response: Response,
    payload: LoginRequest = Body(...),
    db: AsyncSession = Depends(get_async_db),
) -> TokenResponse:
    """Authenticate and start a fresh session (single active session per user)."""
    # [Step 0] Cache hardening
    set_sensitive_cache(response)

    # [Step 1] Delegate to login service (revocation, issuance, device/IP)
    return await login_user(payload=payload, db=db, request=request)


__all__ = ["router", "login"]
