"""Generate a recovery email and optionally deliver it with tracking."""

from __future__ import annotations

import logging

from cart_whisperer.adapters.email.resend_client import ResendEmailClient
from cart_whisperer.core.errors import ConfigurationAppError
from cart_whisperer.schemas.email import GenerateEmailRequest, GenerateEmailResponse
from cart_whisperer.services.email_generation import EmailGenerationService
from cart_whisperer.services.tracking import (
    EmailEventRecorder,
    add_tracking_pixel,
    add_tracking_to_links,
    new_tracking_id,
)

logger = logging.getLogger(__name__)


class RecoveryEmailService:
    """Orchestrates generation, link tracking, delivery and the ``sent`` event.

    Attributes:
        generator: Produces subject and HTML.
        email_client: Transactional email client; None when not configured.
        recorder: Email event recorder; None when the database is not configured.
        host: Public base URL for tracking links; tracking is skipped without it.
    """

    def __init__(
        self,
        generator: EmailGenerationService,
        *,
        email_client: ResendEmailClient | None,
        recorder: EmailEventRecorder | None,
        host: str | None,
    ) -> None:
        self.generator = generator
        self.email_client = email_client
        self.recorder = recorder
        self.host = host

    async def run(
        self, request: GenerateEmailRequest, *, user_id: str | None = None
    ) -> GenerateEmailResponse:
        email = await self.generator.generate(request, user_id=user_id)

        if not request.send_email:
            return GenerateEmailResponse(subject=email.subject, html=email.html)

        if self.email_client is None:
            raise ConfigurationAppError(
                code="email_not_configured",
                message="Sending requires EMAIL_RESEND_API_KEY to be configured",
            )

        tracking_id = new_tracking_id()
        html = email.html
        if self.host:
            html = add_tracking_to_links(html, tracking_id, self.host)
            html = add_tracking_pixel(html, tracking_id, self.host)
        else:
            logger.warning("email.tracking_disabled", extra={"reason": "host_not_configured"})

        email_id = await self.email_client.send(
            to=request.customer.email,
            subject=email.subject,
            html=html,
            reply_to=request.reply_to,
        )

        if self.recorder is not None:
            await self.recorder.record(
                tracking_id,
                "sent",
                cart_id=request.cart.id,
                store_id=request.store.id,
                customer_email=request.customer.email,
            )

        return GenerateEmailResponse(
            subject=email.subject,
            html=html,
            sent=True,
            tracking_id=tracking_id,
            email_id=email_id,
        )
