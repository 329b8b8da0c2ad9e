#!/usr/bin/env python3
"""
Seed admin accounts from ADMIN{1..5}_USERNAME / ADMIN{1..5}_PASSWORD.

Reads the same `.env` as the API (pydantic-settings + python-dotenv), then
upserts every complete pair with role `admin`.

Usage:
  python scripts/seed_admins.py [--create-tables]
"""

import argparse
import asyncio
import os
import sys

from dotenv import load_dotenv


async def _run(create_tables: bool) -> int:
    from app.db.base import Base
    from app.db.session import async_engine, async_session_maker
    from app.services.auth.admin_seed_service import admin_credentials_from_env, upsert_admins

    creds = admin_credentials_from_env(os.environ)
    if not creds:
        print("No ADMIN{n}_USERNAME/ADMIN{n}_PASSWORD pairs found", file=sys.stderr)
        return 1

    try:
        if create_tables:
            async with async_engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        async with async_session_maker() as db:
            created, updated = await upsert_admins(db, creds)
    finally:
        await async_engine.dispose()

    print(f"admins created={created} updated={updated}")
    return 0


def main() -> None:
    ap = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    ap.add_argument("--create-tables", action="store_true", help="run create_all before seeding")
    args = ap.parse_args()

    load_dotenv()
    raise SystemExit(asyncio.run(_run(args.create_tables)))


if __name__ == "__main__":
    main()
