from __future__ import annotations

import logging
from typing import Annotated, TypeVar

from fastapi import APIRouter, Depends, Header, Request
from pydantic import BaseModel, ValidationError

from cart_whisperer.adapters.auth.base import AbstractAuthProvider
from cart_whisperer.core.auth import parse_bearer_token, require_access_token
from cart_whisperer.core.config import settings
from cart_whisperer.core.dependencies import get_auth_provider
from cart_whisperer.core.errors import AuthenticationAppError, ValidationAppError
from cart_whisperer.core.rate_limit import namespaced_ip_key, rate_limit
from cart_whisperer.schemas.auth import (
    SessionOut,
    SessionStatusResponse,
    SignInRequest,
    SignInResponse,
    SignUpRequest,
    SignUpResponse,
    UserOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

BodyT = TypeVar("BodyT", bound=BaseModel)


def _json_body_docs(model: type[BaseModel]) -> dict:
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": model.model_json_schema()}},
        }
    }


async def _read_body(request: Request, model: type[BodyT]) -> BodyT:
    """Validate the raw request body against ``model``.

    Credential routes read their body by hand so that the rate limit
    dependency runs first, even for bodies that are not valid JSON.

    Raises:
        ValidationAppError: If the body is not JSON or does not match ``model``.
    """
    try:
        return model.model_validate_json(await request.body())
    except ValidationError as exc:
        raise ValidationAppError(
            code="invalid_request",
            message="Request body must be a JSON object with email and password",
            details={
                "context": {
                    "errors": [
                        {"loc": list(err["loc"]), "msg": err["msg"]}
                        for err in exc.errors(include_url=False)
                    ]
                }
            },
        ) from exc


@router.post(
    "/signin",
    response_model=SignInResponse,
    dependencies=[
        Depends(
            rate_limit(
                limit=settings.rate_limit.signin_limit,
                window_seconds=settings.rate_limit.signin_window_seconds,
                key_func=namespaced_ip_key("auth:signin"),
            )
        )
    ],
    openapi_extra=_json_body_docs(SignInRequest),
)
async def sign_in(
    request: Request,
    provider: Annotated[AbstractAuthProvider, Depends(get_auth_provider)],
) -> SignInResponse:
    """Password sign-in delegated to the hosted auth provider.

    Rate limited per client IP before the body is parsed or the credentials
    are looked at.
    """
    body = await _read_body(request, SignInRequest)
    session = await provider.sign_in(body.email, body.password)
    logger.info("auth.signin_succeeded", extra={"user_id": session.user.id})
    return SignInResponse(
        user=UserOut(id=session.user.id, email=session.user.email),
        session=SessionOut(
            access_token=session.access_token,
            expires_at=session.expires_at,
        ),
    )


@router.post(
    "/signup",
    response_model=SignUpResponse,
    dependencies=[
        Depends(
            rate_limit(
                limit=settings.rate_limit.signup_limit,
                window_seconds=settings.rate_limit.signup_window_seconds,
                key_func=namespaced_ip_key("auth:signup"),
            )
        )
    ],
    openapi_extra=_json_body_docs(SignUpRequest),
)
async def sign_up(
    request: Request,
    provider: Annotated[AbstractAuthProvider, Depends(get_auth_provider)],
) -> SignUpResponse:
    """Register a merchant account.

    ``session`` is null while the provider waits for email confirmation.
    """
    body = await _read_body(request, SignUpRequest)
    result = await provider.sign_up(body.email, body.password)
    logger.info(
        "auth.signup_succeeded",
        extra={"user_id": result.user.id, "confirmation_required": result.session is None},
    )
    session = None
    if result.session is not None:
        session = SessionOut(
            access_token=result.session.access_token,
            expires_at=result.session.expires_at,
        )
    return SignUpResponse(
        user=UserOut(id=result.user.id, email=result.user.email),
        session=session,
        confirmation_required=result.session is None,
    )


@router.get("/session", response_model=SessionStatusResponse)
async def session_status(
    provider: Annotated[AbstractAuthProvider, Depends(get_auth_provider)],
    authorization: Annotated[str | None, Header()] = None,
) -> SessionStatusResponse:
    """Report the user behind the bearer token, or ``{"user": null}``."""
    if not authorization:
        return SessionStatusResponse(user=None)
    try:
        user = await provider.get_user(parse_bearer_token(authorization))
    except AuthenticationAppError:
        return SessionStatusResponse(user=None)
    return SessionStatusResponse(user=UserOut(id=user.id, email=user.email))


@router.post("/signout")
async def sign_out(
    token: Annotated[str, Depends(require_access_token)],
    provider: Annotated[AbstractAuthProvider, Depends(get_auth_provider)],
) -> dict:
    await provider.sign_out(token)
    return {"success": True}
