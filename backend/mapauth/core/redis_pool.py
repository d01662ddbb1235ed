"""
Pooled Redis access for the template and signature stores.

Callers check a connection out for the span of one logical operation with
``async with pool.acquire(db) as client`` and get it back in the pool on
every exit path. Store errors raised while the connection is held surface
as ``StoreFailureError``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as redis
from redis.exceptions import RedisError

from mapauth.core.config import get_settings
from mapauth.core.errors import StoreFailureError
from mapauth.core.logging import get_logger

logger = get_logger(__name__)


class RedisPool:
    """One connection pool per logical database of a single Redis deployment."""

    def __init__(self, url: str, *, max_connections: int = 50) -> None:
        self._url = url
        self._max_connections = max_connections
        self._pools: dict[int, redis.ConnectionPool] = {}

    def _pool_for(self, db: int) -> redis.ConnectionPool:
        pool = self._pools.get(db)
        if pool is None:
            pool = redis.ConnectionPool.from_url(
                self._url,
                max_connections=self._max_connections,
                decode_responses=True,
            )
            # from_url lets the URL path win over a db kwarg
            pool.connection_kwargs["db"] = db
            self._pools[db] = pool
        return pool

    @asynccontextmanager
    async def acquire(self, db: int = 0) -> AsyncIterator[redis.Redis]:
        """Check out a client pinned to one pooled connection of *db*."""
        client = redis.Redis(connection_pool=self._pool_for(db), single_connection_client=True)
        try:
            yield client
        except RedisError as exc:
            logger.warning("redis_command_failed", db=db, error=str(exc))
            raise StoreFailureError(str(exc)) from exc
        finally:
            await client.aclose()

    async def ping(self, db: int = 0) -> bool:
        async with self.acquire(db) as client:
            return bool(await client.ping())

    async def close(self) -> None:
        """Disconnect every pooled connection."""
        pools, self._pools = self._pools, {}
        for pool in pools.values():
            await pool.disconnect()


# Process-wide pool, created on first use
_pool: RedisPool | None = None


def get_redis_pool() -> RedisPool:
    """Get or create the module-level Redis pool."""
    global _pool
    if _pool is None:
        settings = get_settings()
        _pool = RedisPool(
            str(settings.redis_url),
            max_connections=settings.redis_max_connections,
        )
    return _pool


async def close_redis_pool() -> None:
    """Close the Redis pool (call at shutdown)."""
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
