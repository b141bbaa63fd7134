"""Fixed-window rate limiter.

Notes:
- A fixed window admits up to ``2 * limit`` requests across a window boundary
  (``limit`` at the end of one window, ``limit`` at the start of the next).
- Storage failures fail open: the request is allowed and the error is logged,
  so an unreachable Redis degrades rate limiting instead of the service.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable

from cart_whisperer.adapters.rate_limit.base import (
    AbstractRateLimitStore,
    Bucket,
    RateLimitResult,
)
from cart_whisperer.core.logging import hash_for_log

logger = logging.getLogger(__name__)


class FixedWindowRateLimiter:
    """Admit at most ``limit`` requests per key per ``window_seconds`` window."""

    def __init__(
        self,
        *,
        store: AbstractRateLimitStore,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Bucket storage backend.
            limit: Maximum number of requests per window.
            window_seconds: Size of the fixed window in seconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self._store = store
        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def _allowed(self, bucket: Bucket) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            limit=self._limit,
            remaining=max(0, self._limit - bucket.count),
            reset_at=math.ceil(bucket.reset_at),
            retry_after_seconds=None,
        )

    def _blocked(self, bucket: Bucket, now: float) -> RateLimitResult:
        retry_after = math.ceil(bucket.reset_at - now)
        retry_after = min(self._window_seconds, max(1, retry_after))
        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=0,
            reset_at=math.ceil(bucket.reset_at),
            retry_after_seconds=retry_after,
        )

    def _fail_open(self, now: float) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            limit=self._limit,
            remaining=self._limit,
            reset_at=math.ceil(now + self._window_seconds),
            retry_after_seconds=None,
        )

    async def consume(self, key: str) -> RateLimitResult:
        """Count one request for ``key`` and decide whether it may proceed.

        Args:
            key: Bucket key (see ``cart_whisperer.core.rate_limit``).

        Returns:
            RateLimitResult with the decision and header metadata.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()
        try:
            bucket = await self._store.hit(
                key, window_seconds=self._window_seconds, now=now
            )
        except Exception as exc:
            logger.error(
                "rate_limit.store_error",
                extra={
                    "key_hash": hash_for_log(key),
                    "error_type": type(exc).__name__,
                    "limit": self._limit,
                    "window_s": self._window_seconds,
                },
                exc_info=True,
            )
            return self._fail_open(now)

        if bucket.count <= self._limit:
            return self._allowed(bucket)
        return self._blocked(bucket, now)
