# app/services/auth/logout_service.py
from __future__ import annotations

"""
Logout service — FlixCatalog
============================

- `logout_user`: revoke the access token used for this request; optionally
  delete one refresh token (only if it belongs to the caller).
- `logout_all_sessions`: revoke every access token and delete every refresh
  token of the caller.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.user import User
from app.services.token_service import (
    delete_refresh_token,
    revoke_access_token,
    revoke_all_access_tokens,
    revoke_all_refresh_tokens,
)

logger = logging.getLogger("auth.logout")


async def logout_user(
    db: AsyncSession,
    user: User,
    token_payload: Dict[str, Any],
    refresh_token: Optional[str] = None,
) -> None:
    jti = token_payload.get("jti")
    if jti:
        await revoke_access_token(user.id, jti)
    if refresh_token:
        removed = await delete_refresh_token(db, user.id, refresh_token)
        if not removed:
            logger.debug("logout: refresh token not found for user=%s", user.id)
    logger.info("User %s logged out", user.id)


async def logout_all_sessions(db: AsyncSession, user: User) -> int:
    """Returns the number of refresh tokens removed."""
    await revoke_all_access_tokens(user.id)
    removed = await revoke_all_refresh_tokens(db, user.id)
    logger.info("User %s logged out from all devices (%s refresh tokens)", user.id, removed)
    return removed


__all__ = ["logout_user", "logout_all_sessions"]
