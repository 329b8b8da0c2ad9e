"""
User Info API
=============

GET /user
    The authenticated user's public profile, `{id, username, role}`, wrapped
    in the standard envelope and marked **no-store**.
"""

from fastapi import APIRouter, Depends

from app.api.http_utils import envelope
from app.core.security import get_current_user
from app.db.models.user import User

router = APIRouter(tags=["Me"])


# ─────────────────────────────────────────────────────────────
# 👤 GET CURRENT USER PROFILE
# ─────────────────────────────────────────────────────────────
@router.get("/user", summary="Get current user's profile")
async def get_me(current_user: User = Depends(get_current_user)):
    return envelope(current_user.public_dict(), no_store=True)


__all__ = ["router", "get_me"]
