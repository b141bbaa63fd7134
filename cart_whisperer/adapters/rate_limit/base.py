"""Rate limiter interfaces.

The limiter depends on ``AbstractRateLimitStore`` rather than a concrete
storage so the process-local and Redis backends are interchangeable, and tests
can hand in a fake store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class Bucket:
    """Per-key counter for the current fixed window.

    Attributes:
        count: Requests observed in the current window, including the latest.
        reset_at: UNIX epoch seconds at which the window ends.
    """

    count: int
    reset_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.reset_at


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window resets.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimitStore(ABC):
    """Storage for fixed-window buckets."""

    @abstractmethod
    async def hit(self, key: str, *, window_seconds: int, now: float) -> Bucket:
        """Count one request against ``key`` and return the updated bucket.

        A missing or expired bucket is replaced by a new window starting at
        ``now`` with ``count == 1``; otherwise the count is incremented.

        Args:
            key: Bucket key.
            window_seconds: Length of a new window.
            now: Current UNIX time in seconds.

        Returns:
            Bucket: State after counting this request.
        """
        raise NotImplementedError

    async def close(self) -> None:
        """Release network resources held by the store."""
