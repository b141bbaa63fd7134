"""Rate limiting adapters.

A fixed-window limiter on top of interchangeable bucket stores: a
process-local mapping for single-instance deployments and a Redis store for
limits shared across instances.
"""

from cart_whisperer.adapters.rate_limit.base import (
    AbstractRateLimitStore,
    Bucket,
    RateLimitResult,
)
from cart_whisperer.adapters.rate_limit.factory import (
    LocalBackendConfig,
    RemoteBackendConfig,
    create_rate_limit_store,
    resolve_backend_config,
)
from cart_whisperer.adapters.rate_limit.fixed_window import FixedWindowRateLimiter
from cart_whisperer.adapters.rate_limit.local import LocalRateLimitStore
from cart_whisperer.adapters.rate_limit.redis_store import RedisRateLimitStore

__all__ = [
    "AbstractRateLimitStore",
    "Bucket",
    "FixedWindowRateLimiter",
    "LocalBackendConfig",
    "LocalRateLimitStore",
    "RateLimitResult",
    "RedisRateLimitStore",
    "RemoteBackendConfig",
    "create_rate_limit_store",
    "resolve_backend_config",
]
