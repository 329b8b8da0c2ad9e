# app/db/base.py
"""
FlixCatalog — SQLAlchemy Base registry
======================================

Import all ORM models so their tables are registered on `Base.metadata`
before `create_all` runs (app startup in development, test bootstrap).

Tip: Keep this file import-only; no runtime logic.
"""

from app.db.base_class import Base

from app.db.models.user import User
from app.db.models.token import RefreshToken
from app.db.models.video import Video

__all__ = [
    "Base",
    "User",
    "RefreshToken",
    "Video",
]
