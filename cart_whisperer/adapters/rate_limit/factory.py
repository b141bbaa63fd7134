"""Backend selection for the rate limit store.

The backend is described by an explicit tagged configuration value resolved
once at startup, instead of being inferred from which environment variables
happen to be present.
"""

from __future__ import annotations

import logging
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from cart_whisperer.adapters.rate_limit.base import AbstractRateLimitStore
from cart_whisperer.adapters.rate_limit.local import (
    DEFAULT_SWEEP_THRESHOLD,
    LocalRateLimitStore,
)
from cart_whisperer.adapters.rate_limit.redis_store import RedisRateLimitStore
from cart_whisperer.core.config import RateLimitSettings

logger = logging.getLogger(__name__)


class LocalBackendConfig(BaseModel):
    kind: Literal["local"] = "local"
    sweep_threshold: int = Field(DEFAULT_SWEEP_THRESHOLD, ge=1)


class RemoteBackendConfig(BaseModel):
    kind: Literal["remote"] = "remote"
    url: str = Field(..., min_length=1)
    token: str = Field(..., min_length=1)


BackendConfig = Annotated[
    Union[LocalBackendConfig, RemoteBackendConfig],
    Field(discriminator="kind"),
]

_backend_config_adapter: TypeAdapter[BackendConfig] = TypeAdapter(BackendConfig)


def resolve_backend_config(
    rate_limit_settings: RateLimitSettings,
) -> LocalBackendConfig | RemoteBackendConfig:
    """Turn flat settings into a validated backend configuration.

    Raises:
        pydantic.ValidationError: If ``backend="remote"`` is selected without
            ``RATE_LIMIT_REDIS_URL`` and ``RATE_LIMIT_REDIS_TOKEN``.
    """
    if rate_limit_settings.backend == "remote":
        raw = {
            "kind": "remote",
            "url": rate_limit_settings.redis_url,
            "token": rate_limit_settings.redis_token,
        }
    else:
        raw = {
            "kind": "local",
            "sweep_threshold": rate_limit_settings.sweep_threshold,
        }
    return _backend_config_adapter.validate_python(raw)


def create_rate_limit_store(
    config: LocalBackendConfig | RemoteBackendConfig,
) -> AbstractRateLimitStore:
    """Instantiate the store described by ``config``."""
    if isinstance(config, RemoteBackendConfig):
        logger.info("rate_limit.backend_selected", extra={"backend": "remote"})
        return RedisRateLimitStore.from_url(config.url, config.token)

    logger.info(
        "rate_limit.backend_selected",
        extra={"backend": "local", "sweep_threshold": config.sweep_threshold},
    )
    return LocalRateLimitStore(sweep_threshold=config.sweep_threshold)
