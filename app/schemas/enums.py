from __future__ import annotations

"""
Central enum definitions used across FlixCatalog.

• All enums subclass `str, PyEnum` for JSON-friendly serialization.
• VALUE STRINGS are **stable** once deployed (DB enums depend on them).
"""

from enum import Enum as PyEnum


class UserRole(str, PyEnum):
    """Account role; assigned at creation and not changed afterwards."""
    USER = "user"
    ADMIN = "admin"


__all__ = ["UserRole"]
