"""Process-local bucket store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Expired buckets are replaced lazily on access; the table is swept when it
  grows past ``sweep_threshold`` (or by ``sweep()`` from a periodic task).
"""

from __future__ import annotations

import logging
import threading

from cart_whisperer.adapters.rate_limit.base import AbstractRateLimitStore, Bucket

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_THRESHOLD = 10000


class LocalRateLimitStore(AbstractRateLimitStore):
    """In-memory mapping from bucket key to ``Bucket``.

    Suitable for single-instance deployments and local development.
    """

    def __init__(self, *, sweep_threshold: int = DEFAULT_SWEEP_THRESHOLD) -> None:
        if sweep_threshold < 1:
            raise ValueError("sweep_threshold must be >= 1")

        self._sweep_threshold = sweep_threshold
        self._lock = threading.Lock()
        self._buckets: dict[str, Bucket] = {}

    def __len__(self) -> int:
        return len(self._buckets)

    def get(self, key: str) -> Bucket | None:
        """Return the stored bucket for ``key`` without counting a request."""
        return self._buckets.get(key)

    async def hit(self, key: str, *, window_seconds: int, now: float) -> Bucket:
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None or bucket.is_expired(now):
                bucket = Bucket(count=1, reset_at=now + window_seconds)
                self._buckets[key] = bucket
            else:
                bucket.count += 1

            if len(self._buckets) > self._sweep_threshold:
                self._sweep_locked(now)

            return Bucket(count=bucket.count, reset_at=bucket.reset_at)

    def sweep(self, now: float) -> int:
        """Evict every bucket whose window has ended.

        Returns:
            Number of evicted buckets.
        """
        with self._lock:
            return self._sweep_locked(now)

    def _sweep_locked(self, now: float) -> int:
        expired = [k for k, b in self._buckets.items() if b.is_expired(now)]
        for key in expired:
            del self._buckets[key]
        if expired:
            logger.debug(
                "rate_limit.local_sweep",
                extra={"evicted": len(expired), "size": len(self._buckets)},
            )
        return len(expired)
