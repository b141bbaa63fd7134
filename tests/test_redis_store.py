"""Tests for the Redis bucket store against an in-process fake client.

The fake mimics the subset of ``redis.asyncio.Redis`` the store uses: a
transactional pipeline of ``INCR`` + ``PTTL``, ``EXPIRE`` and ``aclose``.
Time is driven explicitly so TTL expiry can be tested without sleeping.
"""

import asyncio
from unittest.mock import Mock

import pytest

from cart_whisperer.adapters.rate_limit.fixed_window import FixedWindowRateLimiter
from cart_whisperer.adapters.rate_limit.redis_store import RedisRateLimitStore


class FakeRedis:
    def __init__(self, clock: Mock) -> None:
        self.clock = clock
        self.values: dict[str, int] = {}
        self.expires_at: dict[str, float] = {}
        self.expire_calls: list[tuple[str, int]] = []
        self.closed = False

    def _evict(self, key: str) -> None:
        deadline = self.expires_at.get(key)
        if deadline is not None and self.clock() >= deadline:
            self.values.pop(key, None)
            self.expires_at.pop(key, None)

    def incr(self, key: str) -> int:
        self._evict(key)
        self.values[key] = self.values.get(key, 0) + 1
        return self.values[key]

    def pttl(self, key: str) -> int:
        self._evict(key)
        if key not in self.values:
            return -2
        if key not in self.expires_at:
            return -1
        return int((self.expires_at[key] - self.clock()) * 1000)

    async def expire(self, key: str, seconds: int) -> bool:
        self.expire_calls.append((key, seconds))
        self.expires_at[key] = self.clock() + seconds
        return True

    def pipeline(self, transaction: bool = True) -> "FakePipeline":
        assert transaction is True
        return FakePipeline(self)

    async def aclose(self) -> None:
        self.closed = True


class FakePipeline:
    def __init__(self, redis: FakeRedis) -> None:
        self.redis = redis
        self.commands: list[tuple[str, str]] = []

    async def __aenter__(self) -> "FakePipeline":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.commands.clear()

    def incr(self, key: str) -> "FakePipeline":
        self.commands.append(("incr", key))
        return self

    def pttl(self, key: str) -> "FakePipeline":
        self.commands.append(("pttl", key))
        return self

    async def execute(self) -> list[int]:
        # MULTI/EXEC: no other client interleaves between the queued commands
        return [getattr(self.redis, name)(key) for name, key in self.commands]


@pytest.fixture
def clock() -> Mock:
    return Mock(return_value=1000.0)


@pytest.fixture
def fake_redis(clock: Mock) -> FakeRedis:
    return FakeRedis(clock)


@pytest.mark.asyncio
async def test_first_hit_sets_window_ttl(fake_redis: FakeRedis) -> None:
    store = RedisRateLimitStore(fake_redis)

    bucket = await store.hit("k", window_seconds=60, now=1000.0)

    assert bucket.count == 1
    assert bucket.reset_at == 1060.0
    assert fake_redis.expire_calls == [("k", 60)]


@pytest.mark.asyncio
async def test_later_hits_keep_the_original_deadline(
    fake_redis: FakeRedis, clock: Mock
) -> None:
    store = RedisRateLimitStore(fake_redis)
    await store.hit("k", window_seconds=60, now=1000.0)

    clock.return_value = 1030.0
    bucket = await store.hit("k", window_seconds=60, now=1030.0)

    assert bucket.count == 2
    assert bucket.reset_at == pytest.approx(1060.0)
    assert fake_redis.expire_calls == [("k", 60)]


@pytest.mark.asyncio
async def test_key_without_ttl_is_repaired(fake_redis: FakeRedis) -> None:
    fake_redis.values["k"] = 4
    store = RedisRateLimitStore(fake_redis)

    bucket = await store.hit("k", window_seconds=60, now=1000.0)

    assert bucket.count == 5
    assert bucket.reset_at == 1060.0
    assert fake_redis.expire_calls == [("k", 60)]


@pytest.mark.asyncio
async def test_window_restarts_after_ttl(fake_redis: FakeRedis, clock: Mock) -> None:
    store = RedisRateLimitStore(fake_redis)
    limiter = FixedWindowRateLimiter(
        store=store, limit=2, window_seconds=60, clock=clock
    )

    assert (await limiter.consume("k")).allowed is True
    assert (await limiter.consume("k")).allowed is True
    blocked = await limiter.consume("k")
    assert blocked.allowed is False
    assert blocked.retry_after_seconds == 60

    clock.return_value = 1061.0
    result = await limiter.consume("k")
    assert result.allowed is True
    assert result.remaining == 1


@pytest.mark.asyncio
async def test_concurrent_requests_never_exceed_limit(
    fake_redis: FakeRedis, clock: Mock
) -> None:
    limiter = FixedWindowRateLimiter(
        store=RedisRateLimitStore(fake_redis), limit=10, window_seconds=60, clock=clock
    )

    results = await asyncio.gather(*(limiter.consume("k") for _ in range(25)))

    assert sum(r.allowed for r in results) == 10
    assert fake_redis.values["k"] == 25


@pytest.mark.asyncio
async def test_close_releases_connection(fake_redis: FakeRedis) -> None:
    store = RedisRateLimitStore(fake_redis)

    await store.close()

    assert fake_redis.closed is True
