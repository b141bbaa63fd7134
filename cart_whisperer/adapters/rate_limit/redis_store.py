"""Redis-backed bucket store shared by every instance of the service.

Counting relies on Redis' atomic ``INCR`` so concurrent requests from any
number of workers never observe the same count. The window length is stored as
the key's TTL, so an expired window simply disappears from Redis.
"""

from __future__ import annotations

from redis.asyncio import Redis

from cart_whisperer.adapters.rate_limit.base import AbstractRateLimitStore, Bucket


class RedisRateLimitStore(AbstractRateLimitStore):
    """Fixed-window counters stored as Redis integers with a TTL."""

    def __init__(self, client: Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str, token: str) -> RedisRateLimitStore:
        """Build a store for a hosted Redis (e.g. Upstash) URL and access token."""
        return cls(Redis.from_url(url, password=token, decode_responses=True))

    async def hit(self, key: str, *, window_seconds: int, now: float) -> Bucket:
        async with self._client.pipeline(transaction=True) as pipe:
            count, pttl = await pipe.incr(key).pttl(key).execute()

        count = int(count)
        pttl = int(pttl)

        # First hit of a window, or a key left without TTL by an earlier failure
        if count == 1 or pttl < 0:
            await self._client.expire(key, window_seconds)
            return Bucket(count=count, reset_at=now + window_seconds)

        return Bucket(count=count, reset_at=now + pttl / 1000)

    async def close(self) -> None:
        await self._client.aclose()
