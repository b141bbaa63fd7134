"""Rate limiting dependency for FastAPI routes.

This module wires the fixed-window limiter into the HTTP layer: it derives
bucket keys from requests and turns a denied result into
``RateLimitExceededError`` (rendered as a 429 by the exception handlers).

Usage:
    @router.post("/signin", dependencies=[Depends(rate_limit(limit=5))])
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from fastapi import Request

from cart_whisperer.adapters.rate_limit.base import AbstractRateLimitStore, RateLimitResult
from cart_whisperer.adapters.rate_limit.fixed_window import FixedWindowRateLimiter
from cart_whisperer.core.config import settings
from cart_whisperer.core.errors import RateLimitExceededError
from cart_whisperer.core.logging import hash_for_log

logger = logging.getLogger(__name__)

KeyFunc = Callable[[Request], str]


def client_ip(request: Request) -> str:
    """Best-effort client address.

    Takes the first entry of ``X-Forwarded-For`` when present, otherwise the
    socket peer. No further canonicalization is applied.
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "anonymous"


def default_key(request: Request) -> str:
    """``rate-limit:{ip}:{path}``"""
    return f"rate-limit:{client_ip(request)}:{request.url.path}"


def namespaced_ip_key(namespace: str) -> KeyFunc:
    """Key function limiting by client IP inside a route namespace.

    ``namespaced_ip_key("auth:signin")`` yields ``auth:signin:{ip}``.
    """

    def key_func(request: Request) -> str:
        return f"{namespace}:{client_ip(request)}"

    return key_func


def get_rate_limit_store(request: Request) -> AbstractRateLimitStore:
    """Return the store created at startup by the application factory."""
    return request.app.state.rate_limit_store


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Standard headers describing a denied request."""
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_at),
        "Retry-After": str(result.retry_after_seconds or 0),
    }


def rate_limit(
    *,
    limit: int | None = None,
    window_seconds: int | None = None,
    key_func: KeyFunc = default_key,
    clock: Callable[[], float] = time.time,
):
    """Build a dependency enforcing a fixed-window limit on a route.

    Args:
        limit: Requests per window; defaults to ``RATE_LIMIT_DEFAULT_LIMIT``.
        window_seconds: Window length; defaults to
            ``RATE_LIMIT_DEFAULT_WINDOW_SECONDS``.
        key_func: Maps the request to a bucket key.
        clock: Time source, overridable in tests.

    Raises:
        ValueError: If limit or window_seconds are not positive.
    """
    limit = limit if limit is not None else settings.rate_limit.default_limit
    window_seconds = (
        window_seconds
        if window_seconds is not None
        else settings.rate_limit.default_window_seconds
    )
    if limit < 1:
        raise ValueError("limit must be >= 1")
    if window_seconds < 1:
        raise ValueError("window_seconds must be >= 1")

    async def enforce_rate_limit(request: Request) -> None:
        if not settings.rate_limit.enabled:
            return

        limiter = FixedWindowRateLimiter(
            store=get_rate_limit_store(request),
            limit=limit,
            window_seconds=window_seconds,
            clock=clock,
        )
        key = key_func(request)
        result = await limiter.consume(key)
        request.state.rate_limit = result

        if result.allowed:
            logger.debug(
                "rate_limit.allowed",
                extra={
                    "key_hash": hash_for_log(key),
                    "limit": result.limit,
                    "remaining": result.remaining,
                    "window_s": window_seconds,
                },
            )
            return

        logger.warning(
            "rate_limit.exceeded",
            extra={
                "key_hash": hash_for_log(key),
                "path": request.url.path,
                "limit": result.limit,
                "window_s": window_seconds,
                "retry_after_s": result.retry_after_seconds,
            },
        )
        raise RateLimitExceededError(result)

    return enforce_rate_limit
