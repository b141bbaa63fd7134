from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: str | None


@dataclass(frozen=True)
class AuthSession:
    """Session issued by the auth provider after a password sign-in."""

    user: AuthUser
    access_token: str
    expires_at: int | None


@dataclass(frozen=True)
class SignUpResult:
    """A new account; ``session`` is None until the email is confirmed."""

    user: AuthUser
    session: AuthSession | None


class AbstractAuthProvider(ABC):
    """Interface for the hosted authentication provider."""

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthSession:
        """Exchange email/password credentials for a session.

        Raises:
            AuthenticationAppError: If the credentials are rejected.
            UpstreamAppError: If the provider is unreachable or misbehaves.
        """
        raise NotImplementedError

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> SignUpResult:
        """Register a new email/password account.

        Raises:
            ValidationAppError: If the provider refuses the email or password.
            UpstreamAppError: If the provider is unreachable or misbehaves.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_user(self, access_token: str) -> AuthUser:
        """Resolve the user owning ``access_token``.

        Raises:
            AuthenticationAppError: If the token is invalid or expired.
        """
        raise NotImplementedError

    @abstractmethod
    async def sign_out(self, access_token: str) -> None:
        raise NotImplementedError
