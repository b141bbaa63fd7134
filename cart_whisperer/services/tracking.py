"""Open/click tracking for recovery emails.

Links are rewritten with a regex rather than an HTML parser; generated emails
are simple enough that ``<a ... href="...">`` covers them.
"""

from __future__ import annotations

import base64
import html
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Literal
from urllib.parse import quote

from cart_whisperer.adapters.database.supabase_rest import SupabaseRestClient
from cart_whisperer.core.logging import hash_for_log

logger = logging.getLogger(__name__)

EMAIL_EVENTS_TABLE = "email_events"

EventStatus = Literal["sent", "opened", "clicked"]

_ANCHOR_HREF = re.compile(
    r"""(<a\s+(?:[^>]*?\s+)?)href=(["'])(.*?)\2""", re.IGNORECASE | re.DOTALL
)

# 1x1 transparent GIF
TRACKING_PIXEL_GIF = base64.b64decode(
    "R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7"
)


def new_tracking_id() -> str:
    return str(uuid.uuid4())


def click_tracking_url(base_url: str, tracking_id: str, target_url: str) -> str:
    return (
        f"{base_url.rstrip('/')}/api/track/click/{tracking_id}"
        f"?url={quote(target_url, safe='')}"
    )


def add_tracking_to_links(body: str, tracking_id: str, base_url: str) -> str:
    """Point every anchor at the click tracking endpoint.

    The original target travels URL-encoded in the ``url`` query parameter;
    the quote style of the attribute and the other attributes of the tag are
    preserved.
    """

    def _rewrite(match: re.Match[str]) -> str:
        prefix, quote_char = match.group(1), match.group(2)
        target = html.unescape(match.group(3))
        tracked = html.escape(click_tracking_url(base_url, tracking_id, target))
        return f"{prefix}href={quote_char}{tracked}{quote_char}"

    return _ANCHOR_HREF.sub(_rewrite, body)


def add_tracking_pixel(body: str, tracking_id: str, base_url: str) -> str:
    """Append an invisible 1x1 image pointing at the open tracking endpoint."""
    pixel = (
        f'<img src="{base_url.rstrip("/")}/api/track/open/{tracking_id}" '
        'width="1" height="1" alt="" style="display:none;" />'
    )
    return f"{body}{pixel}"


class EmailEventRecorder:
    """Persist email lifecycle events to the ``email_events`` table."""

    def __init__(self, db: SupabaseRestClient) -> None:
        self.db = db

    async def record(
        self,
        tracking_id: str,
        status: EventStatus,
        *,
        cart_id: str | None = None,
        store_id: str | None = None,
        customer_email: str | None = None,
        link_url: str | None = None,
    ) -> None:
        row = {
            "tracking_id": tracking_id,
            "status": status,
            "cart_id": cart_id,
            "store_id": store_id,
            "customer_email": customer_email,
            "link_url": link_url,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        await self.db.insert(EMAIL_EVENTS_TABLE, row)
        logger.info(
            "email.event_recorded",
            extra={
                "tracking_id": tracking_id,
                "status": status,
                "recipient_hash": hash_for_log(customer_email) if customer_email else None,
            },
        )
