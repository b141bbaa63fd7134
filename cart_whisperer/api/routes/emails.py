from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from cart_whisperer.adapters.auth.base import AuthUser
from cart_whisperer.core.auth import require_user
from cart_whisperer.core.config import settings
from cart_whisperer.core.dependencies import get_recovery_service
from cart_whisperer.core.rate_limit import rate_limit
from cart_whisperer.schemas.email import GenerateEmailRequest, GenerateEmailResponse
from cart_whisperer.services.recovery import RecoveryEmailService

router = APIRouter(tags=["Emails"])


@router.post(
    "/generate-email",
    response_model=GenerateEmailResponse,
    dependencies=[
        Depends(
            rate_limit(
                limit=settings.rate_limit.generate_email_limit,
                window_seconds=settings.rate_limit.generate_email_window_seconds,
            )
        )
    ],
)
async def generate_email(
    body: GenerateEmailRequest,
    user: Annotated[AuthUser, Depends(require_user)],
    service: Annotated[RecoveryEmailService, Depends(get_recovery_service)],
) -> GenerateEmailResponse:
    """Generate a recovery email for an abandoned cart.

    ``mode="template"`` renders one of the built-in templates; ``mode="ai"``
    asks the LLM for a subject and body. With ``send_email=true`` the email
    is delivered with open/click tracking and a ``sent`` event is recorded.
    ``prompt_id`` selects one of the caller's saved prompts or a default one.
    """
    return await service.run(body, user_id=user.id)
