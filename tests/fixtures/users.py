from __future__ import annotations

from typing import Awaitable, Callable, Dict, Optional
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import create_access_token, get_password_hash
from app.db.models.user import User
from app.schemas.enums import UserRole


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ──────────────────────────────────────────────────────────────
# 🧪 Factory: Create Test User
# ──────────────────────────────────────────────────────────────
@pytest.fixture
def create_test_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """
    Insert a user with a bcrypt-hashed password and return it.
    """
    async def _create(
        username: Optional[str] = None,
        password: str = "secret123",
        role: UserRole = UserRole.USER,
    ) -> User:
        user = User(
            username=username or f"user_{uuid4().hex[:8]}",
            password_hash=get_password_hash(password),
            role=role,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _create


# ──────────────────────────────────────────────────────────────
# 🔑 Ready-made principals with live access tokens
# ──────────────────────────────────────────────────────────────
@pytest.fixture
async def user_headers(create_test_user) -> Dict[str, str]:
    user = await create_test_user(username="viewer")
    issued = await create_access_token(user_id=user.id)
    return bearer(issued.token)


@pytest.fixture
async def admin_headers(create_test_user) -> Dict[str, str]:
    admin = await create_test_user(username="root", role=UserRole.ADMIN)
    issued = await create_access_token(user_id=admin.id)
    return bearer(issued.token)


__all__ = ["bearer", "create_test_user", "user_headers", "admin_headers"]
