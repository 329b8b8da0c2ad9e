from __future__ import annotations

"""
👤 FlixCatalog — User (accounts & auth)
======================================

Login identity: unique username, bcrypt hash, and a role that is fixed at
creation time (`user` on registration, `admin` via the seeding script).
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum as SAEnum,
    String,
    func,
)

from app.db.base_class import Base, BigIntPK
from app.schemas.enums import UserRole


class User(Base):
    """Account record used by the auth service and the admin guard."""

    __tablename__ = "users"

    # ── Identity & Authentication ─────────────────────────────────────────────
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    username = Column(String(50), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False, doc="bcrypt hash of the password")
    role = Column(
        SAEnum(
            UserRole,
            name="user_role",
            native_enum=False,
            length=16,
            values_callable=lambda enum: [m.value for m in enum],
        ),
        nullable=False,
        default=UserRole.USER,
    )

    # ── Timestamps ────────────────────────────────────────────────────────────
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        CheckConstraint("length(trim(username)) > 0", name="username_not_blank"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def public_dict(self) -> dict:
        return {"id": self.id, "username": self.username, "role": UserRole(self.role).value}
