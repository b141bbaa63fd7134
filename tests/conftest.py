"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before anything imports
``cart_whisperer.core.config`` so the settings object is built from a known,
offline configuration: local rate limiting and no hosted services.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

os.environ.setdefault("RATE_LIMIT_BACKEND", "local")
os.environ.setdefault("RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("LLM_MODEL", "gpt-4o-mini")
os.environ.setdefault("LOG_LEVEL", "INFO")

import pytest

from cart_whisperer.adapters.auth.base import (
    AbstractAuthProvider,
    AuthSession,
    AuthUser,
    SignUpResult,
)
from cart_whisperer.core.errors import AuthenticationAppError, ValidationAppError

VALID_TOKEN = "valid-token"


class FakeAuthProvider(AbstractAuthProvider):
    """Accepts ``merchant@example.com`` / ``secret`` and ``VALID_TOKEN``."""

    def __init__(self) -> None:
        self.signed_out: list[str] = []

    async def sign_in(self, email: str, password: str) -> AuthSession:
        if email != "merchant@example.com" or password != "secret":
            raise AuthenticationAppError(
                code="invalid_credentials",
                message="Invalid login credentials",
            )
        return AuthSession(
            user=AuthUser(id="user-1", email=email),
            access_token=VALID_TOKEN,
            expires_at=1700003600,
        )

    async def sign_up(self, email: str, password: str) -> SignUpResult:
        if email == "merchant@example.com":
            raise ValidationAppError(
                code="signup_rejected",
                message="User already registered",
            )
        return SignUpResult(user=AuthUser(id="user-2", email=email), session=None)

    async def get_user(self, access_token: str) -> AuthUser:
        if access_token != VALID_TOKEN:
            raise AuthenticationAppError(
                code="invalid_session",
                message="Invalid or expired session",
            )
        return AuthUser(id="user-1", email="merchant@example.com")

    async def sign_out(self, access_token: str) -> None:
        self.signed_out.append(access_token)


@pytest.fixture
def fake_auth_provider() -> FakeAuthProvider:
    return FakeAuthProvider()


@pytest.fixture
def cart_payload() -> dict:
    return {
        "customer": {"email": "jane@example.com", "name": "Jane"},
        "store": {"name": "Acme Goods"},
        "cart": {
            "id": "cart-42",
            "items": [
                {"title": "Blue Mug", "quantity": 2, "price": 12.5},
                {"title": "Tea Sampler", "quantity": 1, "price": 20},
            ],
            "recovery_url": "https://shop.example.com/cart/42",
        },
    }
