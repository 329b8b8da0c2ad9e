"""
Admin seeding — FlixCatalog
===========================

Admins are never created over HTTP. Operators provide up to five credential
pairs through the environment:

    ADMIN1_USERNAME / ADMIN1_PASSWORD
    ...
    ADMIN5_USERNAME / ADMIN5_PASSWORD

Each pair is upserted with role `admin`; an existing account keeps its id,
gets its password re-hashed and is promoted if needed.
"""

from typing import List, Mapping, Tuple
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import get_password_hash
from app.db.models.user import User
from app.schemas.enums import UserRole

logger = logging.getLogger("auth.seed")

MAX_SEEDED_ADMINS = 5


def admin_credentials_from_env(environ: Mapping[str, str]) -> List[Tuple[str, str]]:
    """Collect complete `(username, password)` pairs; half-filled slots are skipped."""
    pairs: List[Tuple[str, str]] = []
    for i in range(1, MAX_SEEDED_ADMINS + 1):
        username = (environ.get(f"ADMIN{i}_USERNAME") or "").strip()
        password = environ.get(f"ADMIN{i}_PASSWORD") or ""
        if username and password:
            pairs.append((username, password))
        elif username or password:
            logger.warning("ADMIN%s is incomplete; skipping", i)
    return pairs


async def upsert_admins(db: AsyncSession, credentials: List[Tuple[str, str]]) -> Tuple[int, int]:
    """Create or update admin accounts. Returns ``(created, updated)``."""
    created = updated = 0
    for username, password in credentials:
        user = (await db.execute(select(User).where(User.username == username))).scalar_one_or_none()
        if user is None:
            db.add(User(username=username, password_hash=get_password_hash(password), role=UserRole.ADMIN))
            created += 1
        else:
            user.password_hash = get_password_hash(password)
            user.role = UserRole.ADMIN
            updated += 1
    await db.commit()
    logger.info("Admin seeding done: created=%s updated=%s", created, updated)
    return created, updated


__all__ = ["admin_credentials_from_env", "upsert_admins", "MAX_SEEDED_ADMINS"]
