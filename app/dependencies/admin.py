from __future__ import annotations

"""
Admin guards
------------
Centralized role checks so every admin router enforces the same rule.

Exports
- is_admin(user): True for role `admin`
- ensure_admin(user): raise 403 if not admin
- admin_user: FastAPI dependency returning the authenticated admin user
"""

from typing import Any

from fastapi import Depends

from app.core.exceptions import PermissionDeniedException
from app.core.security import get_current_user
from app.db.models.user import User
from app.schemas.enums import UserRole


def is_admin(user: Any) -> bool:
    """Return True if the user carries the admin role."""
    return getattr(user, "role", None) == UserRole.ADMIN


def ensure_admin(user: Any) -> None:
    if not is_admin(user):
        raise PermissionDeniedException("Unauthorized")


# Dependency returning the admin user (for use in endpoint signatures)
async def admin_user(current_user: User = Depends(get_current_user)) -> User:
    ensure_admin(current_user)
    return current_user


__all__ = ["is_admin", "ensure_admin", "admin_user"]
