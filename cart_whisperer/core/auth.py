"""Bearer-token authentication against the hosted auth provider.

Routes that act on behalf of a merchant depend on ``require_user``; the token
is the ``access_token`` returned by ``POST /api/auth/signin``.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, Header

from cart_whisperer.adapters.auth.base import AbstractAuthProvider, AuthUser
from cart_whisperer.core.dependencies import get_auth_provider
from cart_whisperer.core.errors import AuthenticationAppError

logger = logging.getLogger(__name__)


def parse_bearer_token(authorization: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header.

    Examples:
        >>> parse_bearer_token("Bearer abc")
        'abc'
        >>> parse_bearer_token("bearer  abc ")
        'abc'

    Raises:
        AuthenticationAppError: If the header is missing or not a bearer token.
    """
    if not authorization:
        raise AuthenticationAppError(
            code="missing_token",
            message="Missing bearer token. Provide an Authorization header.",
        )

    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationAppError(
            code="invalid_authorization_header",
            message="Authorization header must use the Bearer scheme",
        )
    return token


async def require_access_token(
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    return parse_bearer_token(authorization)


async def require_user(
    token: Annotated[str, Depends(require_access_token)],
    provider: Annotated[AbstractAuthProvider, Depends(get_auth_provider)],
) -> AuthUser:
    """Resolve the signed-in user or fail with 401."""
    user = await provider.get_user(token)
    logger.debug("auth.user_resolved", extra={"user_id": user.id})
    return user
