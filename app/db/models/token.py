# app/db/models/token.py
from __future__ import annotations

"""
🔐 FlixCatalog — RefreshToken (session continuation & revocation)
=================================================================

An opaque refresh secret issued to a user at login/registration.

- Only the **SHA-256 hex digest** of the secret is stored (`token_hash`).
- `device_name` / `ip_address` record where the session was opened.
- Rows are deleted (not flagged) on logout, logout-all, a new login, or by
  the expiry sweep.
"""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    func,
)

from app.db.base_class import Base, BigIntPK


class RefreshToken(Base):
    """
    A refresh token bound to a `User`.

    Fields
    ------
    - `token_hash`   : sha256 hex of the opaque secret
    - `expires_at`   : absolute expiry (UTC)
    - `last_used_at` : touched on every successful refresh
    - `device_name`  : User-Agent at issuance (truncated)
    - `ip_address`   : client IP at issuance (v4 or v6 text)
    """

    __tablename__ = "refresh_tokens"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    user_id = Column(
        BigIntPK,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Owner user ID",
    )

    token_hash = Column(String(64), nullable=False, unique=True, comment="sha256 hex of the refresh secret")
    device_name = Column(String(255), nullable=True)
    ip_address = Column(String(45), nullable=True)

    expires_at = Column(DateTime(timezone=True), nullable=False, index=True, comment="UTC expiry timestamp")
    last_used_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        Index("ix_refresh_user_expires", "user_id", "expires_at"),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<RefreshToken id={self.id} user={self.user_id} expires_at={self.expires_at}>"
