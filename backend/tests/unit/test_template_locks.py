"""Unit tests for the per-template advisory lock."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import RedisError

from mapauth.core.errors import TemplateLockedError
from mapauth.core.keys import template_lock_key
from mapauth.modules.templates.locks import TemplateLock, hold_template_lock
from tests.tools.fake_redis import FakeRedis


@pytest.fixture()
def store() -> dict:
    return {}


@pytest.fixture()
def lock(store: dict) -> TemplateLock:
    return TemplateLock(FakeRedis(store))  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_acquire_wins_once_then_loses(lock: TemplateLock) -> None:
    assert await lock.acquire("alice", "k") is True
    assert await lock.acquire("alice", "k") is False
    assert await lock.acquire("alice", "other") is True
    assert await lock.acquire("bob", "k") is True


@pytest.mark.asyncio
async def test_acquire_stores_creation_time_in_milliseconds(
    lock: TemplateLock, store: dict
) -> None:
    await lock.acquire("alice", "k")

    ctime = store[template_lock_key("alice")]["k"]
    assert ctime.isdigit()
    assert len(ctime) >= 13


@pytest.mark.asyncio
async def test_release_reports_whether_a_lock_was_removed(lock: TemplateLock) -> None:
    await lock.acquire("alice", "k")

    assert await lock.release("alice", "k") is True
    assert await lock.release("alice", "k") is False
    assert await lock.is_locked("alice", "k") is False
    assert await lock.acquire("alice", "k") is True


@pytest.mark.asyncio
async def test_hold_releases_after_body(store: dict) -> None:
    client = FakeRedis(store)

    async with hold_template_lock(client, "alice", "k"):  # type: ignore[arg-type]
        assert "k" in store[template_lock_key("alice")]

    assert store[template_lock_key("alice")] == {}


@pytest.mark.asyncio
async def test_hold_releases_when_body_raises(store: dict) -> None:
    client = FakeRedis(store)

    with pytest.raises(RuntimeError, match="boom"):
        async with hold_template_lock(client, "alice", "k"):  # type: ignore[arg-type]
            raise RuntimeError("boom")

    assert store[template_lock_key("alice")] == {}


@pytest.mark.asyncio
async def test_hold_refuses_held_lock_without_releasing_it(store: dict) -> None:
    store[template_lock_key("alice")] = {"k": "1700000000000"}
    client = FakeRedis(store)
    body = AsyncMock()

    with pytest.raises(TemplateLockedError, match="is locked"):
        async with hold_template_lock(client, "alice", "k"):  # type: ignore[arg-type]
            await body()

    body.assert_not_awaited()
    assert store[template_lock_key("alice")] == {"k": "1700000000000"}


@pytest.mark.asyncio
async def test_release_failure_is_logged_not_raised() -> None:
    client = AsyncMock()
    client.hsetnx = AsyncMock(return_value=True)
    client.hdel = AsyncMock(side_effect=RedisError("connection lost"))

    async with hold_template_lock(client, "alice", "k"):
        pass

    client.hdel.assert_awaited_once_with(template_lock_key("alice"), "k")


@pytest.mark.asyncio
async def test_externally_removed_lock_does_not_fail_the_body() -> None:
    client = AsyncMock()
    client.hsetnx = AsyncMock(return_value=True)
    client.hdel = AsyncMock(return_value=0)

    async with hold_template_lock(client, "alice", "k"):
        pass

    client.hdel.assert_awaited_once()
