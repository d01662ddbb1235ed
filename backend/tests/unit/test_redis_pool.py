"""Unit tests for pooled Redis access and store-failure translation."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from mapauth.core import redis_pool as redis_pool_module
from mapauth.core.errors import StoreFailureError
from mapauth.core.redis_pool import RedisPool, close_redis_pool, get_redis_pool


def _mock_client() -> MagicMock:
    client = MagicMock()
    client.aclose = AsyncMock()
    client.ping = AsyncMock(return_value=True)
    return client


def test_pool_per_database_overrides_url_database() -> None:
    pool = RedisPool("redis://localhost:6379/0", max_connections=7)

    db3 = pool._pool_for(3)

    assert db3.connection_kwargs["db"] == 3
    assert db3.max_connections == 7
    assert pool._pool_for(3) is db3
    assert pool._pool_for(0) is not db3


@pytest.mark.asyncio
async def test_acquire_releases_connection_on_success() -> None:
    pool = RedisPool("redis://localhost:6379/0")
    client = _mock_client()

    with patch.object(redis_pool_module.redis, "Redis", return_value=client) as redis_cls:
        async with pool.acquire(2) as acquired:
            assert acquired is client

    assert redis_cls.call_args.kwargs["single_connection_client"] is True
    client.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_acquire_translates_redis_errors_and_still_releases() -> None:
    pool = RedisPool("redis://localhost:6379/0")
    client = _mock_client()

    with (
        patch.object(redis_pool_module.redis, "Redis", return_value=client),
        pytest.raises(StoreFailureError, match="Connection refused") as exc_info,
    ):
        async with pool.acquire():
            raise RedisConnectionError("Connection refused")

    assert isinstance(exc_info.value.__cause__, RedisConnectionError)
    assert exc_info.value.code == "store_failure"
    client.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_acquire_leaves_other_errors_alone() -> None:
    pool = RedisPool("redis://localhost:6379/0")
    client = _mock_client()

    with (
        patch.object(redis_pool_module.redis, "Redis", return_value=client),
        pytest.raises(KeyError),
    ):
        async with pool.acquire():
            raise KeyError("x")

    client.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_ping_uses_requested_database() -> None:
    pool = RedisPool("redis://localhost:6379/0")
    client = _mock_client()

    with patch.object(redis_pool_module.redis, "Redis", return_value=client) as redis_cls:
        assert await pool.ping(4) is True

    assert redis_cls.call_args.kwargs["connection_pool"].connection_kwargs["db"] == 4


@pytest.mark.asyncio
async def test_close_disconnects_every_pool() -> None:
    pool = RedisPool("redis://localhost:6379/0")
    first, second = AsyncMock(), AsyncMock()
    pool._pools = {0: first, 1: second}

    await pool.close()

    first.disconnect.assert_awaited_once()
    second.disconnect.assert_awaited_once()
    assert pool._pools == {}


@pytest.mark.asyncio
async def test_module_pool_is_shared_until_closed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REDIS_MAX_CONNECTIONS", "5")
    await close_redis_pool()

    pool = get_redis_pool()
    assert get_redis_pool() is pool
    assert pool._max_connections == 5

    await close_redis_pool()
    assert get_redis_pool() is not pool
    await close_redis_pool()
