"""Resend transactional email adapter."""

from __future__ import annotations

import logging

import httpx

from cart_whisperer.core.errors import EmailDeliveryAppError
from cart_whisperer.core.logging import hash_for_log

logger = logging.getLogger(__name__)


class ResendEmailClient:
    """Send single HTML emails through ``POST /emails``."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_key: str,
        default_from: str,
    ) -> None:
        self._client = client
        self._api_key = api_key
        self._default_from = default_from

    async def send(
        self,
        *,
        to: str,
        subject: str,
        html: str,
        reply_to: str | None = None,
        from_address: str | None = None,
    ) -> str | None:
        """Send one email.

        Returns:
            Provider message id, when the provider reports one.

        Raises:
            EmailDeliveryAppError: If the provider rejects the message or
                cannot be reached.
        """
        payload: dict[str, object] = {
            "from": from_address or self._default_from,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        if reply_to:
            payload["reply_to"] = reply_to

        try:
            response = await self._client.post(
                "/emails",
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        except httpx.HTTPError as exc:
            raise EmailDeliveryAppError(
                code="email_provider_unavailable",
                message="Email provider is unavailable",
            ) from exc

        if response.status_code >= 300:
            try:
                reason = response.json().get("message")
            except ValueError:
                reason = None
            logger.error(
                "email.send_failed",
                extra={
                    "recipient_hash": hash_for_log(to),
                    "upstream_status": response.status_code,
                },
            )
            raise EmailDeliveryAppError(
                code="email_send_failed",
                message=f"Failed to send email: {reason or response.status_code}",
                details={"upstream_status": response.status_code},
            )

        email_id = response.json().get("id")
        logger.info(
            "email.sent",
            extra={"recipient_hash": hash_for_log(to), "email_id": email_id},
        )
        return email_id
