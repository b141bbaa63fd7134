"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, NotRequired, TypedDict

if TYPE_CHECKING:
    from cart_whisperer.adapters.rate_limit.base import RateLimitResult


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    http_status: int
    retry_after: float
    model: str
    provider: str
    upstream_status: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class AuthenticationAppError(AppError):
    """Raised when credentials or sessions are rejected."""


class LLMAppError(AppError):
    """Raised when LLM provider/client operations fail."""


class EmailDeliveryAppError(AppError):
    """Raised when the transactional email provider rejects a message."""


class UpstreamAppError(AppError):
    """Raised when a hosted auth/database call fails unexpectedly."""


class NotFoundAppError(AppError):
    """Raised when a requested record does not exist or is not visible."""


class PermissionAppError(AppError):
    """Raised when the signed-in user may not modify a record."""


class RateLimitExceededError(Exception):
    """Raised by the rate limit dependency when a request is denied.

    Carries the limiter result so the handler can build the 429 headers.
    """

    def __init__(self, result: RateLimitResult) -> None:
        super().__init__("Too many requests")
        self.result = result


class ConfigurationAppError(AppError):
    """Raised when a feature is used without its hosted service configured."""
