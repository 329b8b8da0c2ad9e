# app/core/redis_client.py
from __future__ import annotations

"""
FlixCatalog — Redis connection holder
=====================================

One process-wide `redis_wrapper` shared by:

- the access-token allow-list (`access:jti:*`, `access:user:*`)
- the metadata cache when `CACHE_BACKEND=redis` (JSON values with TTL)
- the refresh-token sweep, which takes a short `SET NX EX` lock so only one
  worker purges at a time

Connection settings come from `REDIS_URL`, `REDIS_CONNECT_ATTEMPTS`,
`REDIS_SOCKET_TIMEOUT` and `REDIS_MAX_CONNECTIONS`. Tests assign an in-memory
mock to `_client` before the app is created.
"""

import asyncio
import json
import logging
import secrets
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.core.config import settings

logger = logging.getLogger("redis")

_BACKOFF_CAP = 2.0


class RedisClient:
    """Lazily connected wrapper around a pooled `redis.asyncio.Redis`."""

    def __init__(self, url: str, *, attempts: int = 3) -> None:
        self.url = url
        self.attempts = attempts
        self._client: Any = None

    @property
    def client(self) -> Any:
        if self._client is None:
            raise RuntimeError("Redis is not connected; call connect() during startup")
        return self._client

    def _build(self) -> Any:
        return redis.Redis.from_url(
            self.url,
            decode_responses=True,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
            socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            health_check_interval=30,
        )

    async def connect(self) -> None:
        """Ping the current client or open a new one, retrying with backoff.

        Raises `RuntimeError` once every attempt has failed.
        """
        if await self.is_connected():
            return

        error: Optional[BaseException] = None
        for attempt in range(1, self.attempts + 1):
            candidate = self._build()
            try:
                await candidate.ping()
            except (RedisError, OSError) as exc:
                error = exc
                wait = min(_BACKOFF_CAP, 0.25 * 2 ** (attempt - 1))
                logger.warning("Redis ping failed (attempt %d/%d): %r", attempt, self.attempts, exc)
                await asyncio.sleep(wait)
                continue
            self._client = candidate
            logger.info("Connected to Redis")
            return

        self._client = None
        raise RuntimeError("Could not connect to Redis") from error

    async def close(self) -> None:
        client, self._client = self._client, None
        if client is None:
            return
        try:
            await client.aclose()
        except RedisError as exc:
            logger.warning("Closing Redis failed: %s", exc)

    async def is_connected(self) -> bool:
        if self._client is None:
            return False
        try:
            return bool(await self._client.ping())
        except (RedisError, OSError):
            return False

    # ── JSON values ──────────────────────────────────────────
    async def json_set(self, key: str, value: Any, *, ttl_seconds: Optional[int] = None) -> None:
        payload = json.dumps(value, separators=(",", ":"), default=str)
        await self.client.set(key, payload, ex=ttl_seconds or None)

    async def json_get(self, key: str, default: Any = None) -> Any:
        """Decoded value at `key`; `default` when absent or not valid JSON."""
        raw = await self.client.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Ignoring malformed JSON stored at %s", key)
            return default

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(await self.client.delete(*keys))

    # ── Locking ──────────────────────────────────────────────
    @asynccontextmanager
    async def lock(
        self,
        name: str,
        *,
        timeout: int = 10,
        blocking_timeout: float = 3,
        poll: float = 0.2,
    ) -> AsyncIterator[None]:
        """Hold `name` for at most `timeout` seconds.

        Polls for up to `blocking_timeout` seconds and raises `TimeoutError`
        if the lock stays taken. Release only removes our own token.
        """
        conn = self.client
        owner = secrets.token_hex(8)
        give_up_at = time.monotonic() + max(0.0, blocking_timeout)
        while not await conn.set(name, owner, ex=int(timeout), nx=True):
            if time.monotonic() >= give_up_at:
                raise TimeoutError(f"lock {name!r} is held elsewhere")
            await asyncio.sleep(poll)
        try:
            yield
        finally:
            try:
                if await conn.get(name) == owner:
                    await conn.delete(name)
            except RedisError:
                logger.debug("Releasing lock %s failed", name, exc_info=True)


redis_wrapper = RedisClient(settings.REDIS_URL, attempts=settings.REDIS_CONNECT_ATTEMPTS)

__all__ = ["RedisClient", "redis_wrapper"]
