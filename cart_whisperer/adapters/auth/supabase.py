"""Supabase (GoTrue) authentication adapter over its REST API."""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

import httpx

from cart_whisperer.adapters.auth.base import (
    AbstractAuthProvider,
    AuthSession,
    AuthUser,
    SignUpResult,
)
from cart_whisperer.core.errors import (
    AuthenticationAppError,
    UpstreamAppError,
    ValidationAppError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _error_message(response: httpx.Response, default: str = "Authentication failed") -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or default
    if not isinstance(body, dict):
        return default
    message = body.get("error_description") or body.get("msg") or body.get("message")
    return message if isinstance(message, str) and message else default


def _unexpected_response(status_code: int) -> UpstreamAppError:
    return UpstreamAppError(
        code="auth_provider_error",
        message="Authentication service returned an unexpected response",
        details={"upstream_status": status_code},
    )


def _user_from(payload: dict[str, Any]) -> AuthUser:
    user_id = payload["id"]
    if not isinstance(user_id, str) or not user_id:
        raise ValueError("user id must be a non-empty string")
    return AuthUser(id=user_id, email=payload.get("email"))


def _session_from(payload: dict[str, Any]) -> AuthSession:
    token = payload["access_token"]
    if not isinstance(token, str) or not token:
        raise ValueError("access_token must be a non-empty string")
    return AuthSession(
        user=_user_from(payload.get("user") or {}),
        access_token=token,
        expires_at=payload.get("expires_at"),
    )


def _parse(response: httpx.Response, build: Callable[[dict[str, Any]], T]) -> T:
    """Build a result from a 200 JSON body, treating any malformed body as upstream failure."""
    try:
        payload = response.json()
        if not isinstance(payload, dict):
            raise TypeError(f"expected a JSON object, got {type(payload).__name__}")
        return build(payload)
    except (KeyError, TypeError, ValueError) as exc:
        logger.error(
            "auth.upstream_malformed_response",
            extra={"path": response.request.url.path, "error_type": type(exc).__name__},
        )
        raise _unexpected_response(response.status_code) from exc


class SupabaseAuthProvider(AbstractAuthProvider):
    """Password sign-in and session checks against ``{url}/auth/v1``.

    The ``httpx.AsyncClient`` is injected so the application can share one
    connection pool and tests can mount an ``httpx.MockTransport``.
    """

    def __init__(self, client: httpx.AsyncClient, *, anon_key: str) -> None:
        self._client = client
        self._anon_key = anon_key

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        headers = {"apikey": self._anon_key}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error(
                "auth.upstream_unreachable",
                extra={"path": path, "error_type": type(exc).__name__},
            )
            raise UpstreamAppError(
                code="auth_provider_unavailable",
                message="Authentication service is unavailable",
            ) from exc

    async def sign_in(self, email: str, password: str) -> AuthSession:
        response = await self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
            headers=self._headers(),
        )

        if response.status_code in (400, 401, 422):
            raise AuthenticationAppError(
                code="invalid_credentials",
                message=_error_message(response),
            )
        if response.status_code != 200:
            raise _unexpected_response(response.status_code)

        return _parse(response, _session_from)

    async def sign_up(self, email: str, password: str) -> SignUpResult:
        response = await self._request(
            "POST",
            "/auth/v1/signup",
            json={"email": email, "password": password},
            headers=self._headers(),
        )

        if response.status_code in (400, 422):
            raise ValidationAppError(
                code="signup_rejected",
                message=_error_message(response, "Sign-up was rejected"),
            )
        if response.status_code != 200:
            raise _unexpected_response(response.status_code)

        # With email confirmation enabled GoTrue answers with the bare user
        def build(payload: dict[str, Any]) -> SignUpResult:
            if "access_token" in payload:
                session = _session_from(payload)
                return SignUpResult(user=session.user, session=session)
            return SignUpResult(user=_user_from(payload.get("user") or payload), session=None)

        return _parse(response, build)

    async def get_user(self, access_token: str) -> AuthUser:
        response = await self._request(
            "GET", "/auth/v1/user", headers=self._headers(access_token)
        )
        if response.status_code in (401, 403):
            raise AuthenticationAppError(
                code="invalid_session",
                message="Session is invalid or has expired",
            )
        if response.status_code != 200:
            raise _unexpected_response(response.status_code)
        return _parse(response, _user_from)

    async def sign_out(self, access_token: str) -> None:
        response = await self._request(
            "POST", "/auth/v1/logout", headers=self._headers(access_token)
        )
        # GoTrue answers 204; an already invalid token is not worth surfacing
        if response.status_code >= 500:
            raise _unexpected_response(response.status_code)
