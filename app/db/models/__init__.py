# app/db/models/__init__.py
"""
FlixCatalog — ORM models package.

Importing the package registers every table on `Base.metadata`.
"""

from app.db.base_class import Base

from .user import User
from .token import RefreshToken
from .video import Video

__all__ = ["Base", "User", "RefreshToken", "Video"]
