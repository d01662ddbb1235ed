"""
Advisory per-template locks.

A lock is a field of the owner's lock hash (``map_tpl|<owner>|locks``) named
after the template and holding its creation time in milliseconds. Acquiring
is a single HSETNX: whoever creates the field holds the lock, everybody else
is told to come back later. Locks never expire; a holder that dies before
releasing leaves the template locked until the field is removed by hand.
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as redis
from redis.exceptions import RedisError

from mapauth.core.errors import TemplateLockedError
from mapauth.core.keys import template_lock_key
from mapauth.core.logging import get_logger

logger = get_logger(__name__)


class TemplateLock:
    """Acquire/release primitive over an already checked-out Redis client."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    async def acquire(self, owner: str, name: str) -> bool:
        """Try once to take the lock; ``False`` means someone else holds it."""
        ctime = int(time.time() * 1000)
        created = await self._client.hsetnx(template_lock_key(owner), name, ctime)
        return bool(created)

    async def release(self, owner: str, name: str) -> bool:
        """Drop the lock; ``False`` means there was no lock to drop."""
        removed = await self._client.hdel(template_lock_key(owner), name)
        return bool(removed)

    async def is_locked(self, owner: str, name: str) -> bool:
        return bool(await self._client.hexists(template_lock_key(owner), name))


@asynccontextmanager
async def hold_template_lock(client: redis.Redis, owner: str, name: str) -> AsyncIterator[None]:
    """Hold the (owner, name) lock for the body of the ``async with`` block.

    Raises ``TemplateLockedError`` without touching the lock when it is
    already held. Release anomalies are logged and never replace the
    outcome of the body.
    """
    lock = TemplateLock(client)
    if not await lock.acquire(owner, name):
        logger.info("template_lock_busy", owner=owner, template=name)
        raise TemplateLockedError(owner, name)
    try:
        yield
    finally:
        try:
            removed = await lock.release(owner, name)
        except RedisError as exc:
            logger.error("template_lock_release_failed", owner=owner, template=name, error=str(exc))
        else:
            if not removed:
                logger.error("template_lock_externally_removed", owner=owner, template=name)
