"""
Signup service — FlixCatalog
============================

Registers a new account with role `user` and starts its first session
(same token issuance as login).

- Duplicate usernames are a field-level validation error.
- Race-safe: the unique constraint is the final arbiter; an `IntegrityError`
  on insert is reported as the same duplicate-username error.
"""

from typing import Optional
import logging

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationException
from app.core.security import get_password_hash
from app.db.models.user import User
from app.schemas.auth import RegisterRequest, TokenResponse
from app.schemas.enums import UserRole
from app.services.auth.login_service import start_session

logger = logging.getLogger("auth.signup")

_DUPLICATE = {"username": ["The username has already been taken."]}


async def register_user(payload: RegisterRequest, db: AsyncSession, request: Optional[Request] = None) -> TokenResponse:
    username = payload.username.strip()
    if not username:
        raise ValidationException({"username": ["The username field is required."]})

    exists = (await db.execute(select(User.id).where(User.username == username))).first()
    if exists:
        raise ValidationException(_DUPLICATE)

    user = User(username=username, password_hash=get_password_hash(payload.password), role=UserRole.USER)
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ValidationException(_DUPLICATE)
    await db.refresh(user)

    logger.info("Registered user %s", user.id)
    return await start_session(db, user, request, message="User registered successfully")


__all__ = ["register_user"]
