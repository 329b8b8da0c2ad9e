#!/usr/bin/env python3
"""
Delete expired refresh tokens once (same sweep the API schedules).

Usage:
  python scripts/purge_refresh_tokens.py [--no-lock]

By default the sweep runs under the shared Redis lock so it never overlaps a
scheduled run on an API replica; `--no-lock` skips Redis entirely.
"""

import argparse
import asyncio


async def _run(use_lock: bool) -> int:
    from app.core.redis_client import redis_wrapper
    from app.db.session import async_engine
    from app.utils.token_cleanup import delete_expired_tokens_locked, run_token_cleanup

    try:
        if use_lock:
            await redis_wrapper.connect()
            purged = await delete_expired_tokens_locked()
        else:
            purged = await run_token_cleanup()
    finally:
        await redis_wrapper.close()
        await async_engine.dispose()

    if purged is None:
        print("skipped: another sweep holds the lock")
        return 1
    print(f"purged={purged}")
    return 0


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--no-lock", action="store_true", help="do not take the Redis lock")
    args = ap.parse_args()
    raise SystemExit(asyncio.run(_run(not args.no_lock)))


if __name__ == "__main__":
    main()
