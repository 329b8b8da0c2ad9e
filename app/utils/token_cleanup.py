# app/utils/token_cleanup.py
from __future__ import annotations

"""
FlixCatalog — refresh-token expiry sweep
----------------------------------------
- Async purge of refresh tokens past `expires_at`
- Replica-safe via the Redis distributed lock (one sweeper at a time)
- APScheduler interval job, started from the app lifespan

Runs off the request path; `scripts/purge_refresh_tokens.py` runs the same
sweep once from the command line.
"""

import logging
from datetime import timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from redis.exceptions import RedisError

from app.core.config import settings
from app.core.redis_client import redis_wrapper
from app.db.session import async_session_maker
from app.services.token_service import purge_expired_refresh_tokens

logger = logging.getLogger("token-cleanup")

_LOCK_KEY = "maintenance:token-cleanup:lock"
_LOCK_TTL_SECONDS = 300


# ─────────────────────────────────────────────
# 🧹 Sweep
# ─────────────────────────────────────────────
async def run_token_cleanup() -> int:
    """Delete expired refresh tokens. Returns the number of rows removed."""
    async with async_session_maker() as db:
        purged = await purge_expired_refresh_tokens(db)
    if purged:
        logger.info("Token cleanup: purged=%s expired refresh tokens", purged)
    else:
        logger.debug("Token cleanup: nothing to purge")
    return purged


async def delete_expired_tokens_locked() -> Optional[int]:
    """
    Scheduled entry point: run the sweep under the Redis lock.

    Returns None when another worker holds the lock.
    """
    try:
        async with redis_wrapper.lock(_LOCK_KEY, timeout=_LOCK_TTL_SECONDS, blocking_timeout=2):
            return await run_token_cleanup()
    except TimeoutError:
        logger.debug("Token cleanup skipped: lock held elsewhere")
        return None
    except (RedisError, RuntimeError) as e:
        logger.warning("Token cleanup skipped: redis unavailable (%s)", e)
        return None


# ─────────────────────────────────────────────
# ⏰ Scheduler
# ─────────────────────────────────────────────
def start_token_cleanup_scheduler(
    *,
    interval_hours: Optional[int] = None,
    jitter_seconds: int = 15,
) -> AsyncIOScheduler:
    """
    Start the APScheduler job and return the scheduler (shut it down on exit).

    Args:
        interval_hours: override; defaults to `TOKEN_CLEANUP_INTERVAL_HOURS`.
        jitter_seconds: small randomization to avoid thundering herd.
    """
    hours = int(interval_hours if interval_hours is not None else settings.TOKEN_CLEANUP_INTERVAL_HOURS)

    scheduler = AsyncIOScheduler(timezone=timezone.utc)
    scheduler.add_job(
        delete_expired_tokens_locked,
        IntervalTrigger(hours=hours, jitter=jitter_seconds, timezone=timezone.utc),
        id="token_cleanup",
        max_instances=1,
        coalesce=True,
    )
    scheduler.start()
    logger.info("Token cleanup scheduler started | interval=%sh, jitter=%ss", hours, jitter_seconds)
    return scheduler


__all__ = ["run_token_cleanup", "delete_expired_tokens_locked", "start_token_cleanup_scheduler"]
