# app/db/session.py
from __future__ import annotations

"""
FlixCatalog — Database Engine & Session Dependencies

- Async engine/session for FastAPI, scripts and the maintenance scheduler.
- Postgres (asyncpg) in deployments; any async SQLAlchemy URL works
  (tests point `DATABASE_URL_OVERRIDE` at aiosqlite).
"""

from typing import Any, AsyncGenerator, Dict
import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)

from app.core.config import settings

logger = logging.getLogger(__name__)

ASYNC_DATABASE_URL: str = settings.ASYNC_DATABASE_URL

# Pool knobs
_POOL_PRE_PING = True
_POOL_RECYCLE = 1800
_POOL_TIMEOUT = 30
_POOL_SIZE = 10
_MAX_OVERFLOW = 20


def _engine_kwargs(url: str) -> Dict[str, Any]:
    """Pool sizing and connect timeouts only apply to server databases."""
    kwargs: Dict[str, Any] = {"echo": settings.DB_ECHO, "pool_pre_ping": _POOL_PRE_PING}
    if url.startswith("sqlite"):
        return kwargs
    kwargs.update(
        pool_recycle=_POOL_RECYCLE,
        pool_size=_POOL_SIZE,
        max_overflow=_MAX_OVERFLOW,
        pool_timeout=_POOL_TIMEOUT,
    )
    if "+asyncpg" in url:
        kwargs["connect_args"] = {
            "timeout": settings.DB_CONNECT_TIMEOUT,
            "command_timeout": settings.DB_CONNECT_TIMEOUT * 3,
        }
    return kwargs


# ───────────────────────────────────────────────────────────────
# ⚡ ASYNC ENGINE
# ───────────────────────────────────────────────────────────────

async_engine: AsyncEngine = create_async_engine(ASYNC_DATABASE_URL, **_engine_kwargs(ASYNC_DATABASE_URL))

async_session_maker = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields an async SQLAlchemy session."""
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def db_healthcheck() -> bool:
    """Quick SELECT 1 to verify DB connectivity (used by /readyz)."""
    try:
        async with async_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except (SQLAlchemyError, OSError):
        logger.exception("DB healthcheck failed")
        return False


__all__ = [
    "async_engine",
    "async_session_maker",
    "get_async_db",
    "db_healthcheck",
]
