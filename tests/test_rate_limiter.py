# tests/test_rate_limiter.py
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from leadfunnel.services.rate_limiter import InMemoryRateLimitStore, RateLimiter, RedisRateLimitStore


@pytest.mark.asyncio
async def test_first_submission_allowed(clock):
    limiter = RateLimiter(InMemoryRateLimitStore(clock=clock), cooldown_seconds=60)
    assert await limiter.allow("198.51.100.1") is True


@pytest.mark.asyncio
async def test_second_submission_inside_window_blocked(clock):
    limiter = RateLimiter(InMemoryRateLimitStore(clock=clock), cooldown_seconds=60)
    assert await limiter.allow("198.51.100.1") is True
    clock.advance(10)
    assert await limiter.allow("198.51.100.1") is False


@pytest.mark.asyncio
async def test_window_boundary_is_inclusive(clock):
    limiter = RateLimiter(InMemoryRateLimitStore(clock=clock), cooldown_seconds=60)
    await limiter.allow("198.51.100.1")
    clock.advance(60)
    assert await limiter.allow("198.51.100.1") is False
    clock.advance(0.5)
    assert await limiter.allow("198.51.100.1") is True


@pytest.mark.asyncio
async def test_blocked_attempt_does_not_extend_cooldown(clock):
    limiter = RateLimiter(InMemoryRateLimitStore(clock=clock), cooldown_seconds=60)
    await limiter.allow("198.51.100.1")
    clock.advance(30)
    assert await limiter.allow("198.51.100.1") is False
    clock.advance(31)
    # 61s after the accepted submission, only 31s after the blocked one
    assert await limiter.allow("198.51.100.1") is True


@pytest.mark.asyncio
async def test_identifiers_are_independent(clock):
    limiter = RateLimiter(InMemoryRateLimitStore(clock=clock), cooldown_seconds=60)
    assert await limiter.allow("198.51.100.1") is True
    assert await limiter.allow("198.51.100.2") is True
    assert await limiter.allow("unknown") is True
    assert await limiter.allow("unknown") is False


@pytest.mark.asyncio
async def test_eviction_drops_oldest_half(clock):
    store = InMemoryRateLimitStore(max_entries=4, clock=clock)
    for i in range(5):
        assert await store.try_acquire(f"client-{i}", 60) is True
        clock.advance(1)

    assert len(store) == 3
    assert "client-0" not in store
    assert "client-1" not in store
    assert "client-4" in store


@pytest.mark.asyncio
async def test_eviction_forgets_cooldown_of_evicted_client(clock):
    store = InMemoryRateLimitStore(max_entries=2, clock=clock)
    await store.try_acquire("a", 60)
    clock.advance(1)
    await store.try_acquire("b", 60)
    clock.advance(1)
    await store.try_acquire("c", 60)

    assert await store.try_acquire("a", 60) is True


@pytest.mark.asyncio
async def test_redis_store_sets_key_with_expiry():
    client = AsyncMock()
    client.set.return_value = True
    factory = AsyncMock(return_value=client)
    store = RedisRateLimitStore(factory)

    assert await store.try_acquire("198.51.100.1", 60) is True

    args, kwargs = client.set.call_args
    assert args[0] == "leadfunnel:cooldown:198.51.100.1"
    assert kwargs["nx"] is True
    assert kwargs["px"] == 60000


@pytest.mark.asyncio
async def test_redis_store_blocks_when_key_exists():
    client = AsyncMock()
    client.set.side_effect = [True, None]
    store = RedisRateLimitStore(AsyncMock(return_value=client))

    assert await store.try_acquire("198.51.100.1", 60) is True
    assert await store.try_acquire("198.51.100.1", 60) is False


@pytest.mark.asyncio
async def test_redis_store_reuses_client():
    client = AsyncMock()
    client.set.return_value = True
    factory = AsyncMock(return_value=client)
    store = RedisRateLimitStore(factory)

    await store.try_acquire("a", 60)
    await store.try_acquire("b", 60)
    assert factory.await_count == 1


@pytest.mark.asyncio
async def test_redis_store_fails_open():
    client = AsyncMock()
    client.set.side_effect = RedisConnectionError("connection refused")
    store = RedisRateLimitStore(AsyncMock(return_value=client))

    assert await store.try_acquire("198.51.100.1", 60) is True


@pytest.mark.asyncio
async def test_redis_store_fails_open_when_unreachable():
    factory = AsyncMock(side_effect=RedisConnectionError("no route to host"))
    store = RedisRateLimitStore(factory)

    assert await store.try_acquire("198.51.100.1", 60) is True
