"""
Registration API
================

POST /register
--------------
Creates a `user`-role account and immediately issues an access token and a
refresh token (same issuance as login).

- **No-store** cache headers on the token-bearing response.
- **Per-route rate limit** from `RATE_LIMIT_AUTH`.
- Duplicate usernames come back as a 422 with a `username` field error.
"""

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.limiter import rate_limit
from app.db.session import get_async_db
from app.schemas.auth import RegisterRequest, TokenResponse
from app.security_headers import set_sensitive_cache
from app.services.auth.signup_service import register_user

router = APIRouter(tags=["Authentication"])


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new account and issue tokens",
)
@rate_limit(settings.RATE_LIMIT_AUTH)
async def register(
    payload: RegisterRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_async_db),
) -> TokenResponse:
    set_sensitive_cache(response)
    return await register_user(payload, db, request)


__all__ = ["router", "register"]
