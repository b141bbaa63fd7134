"""Cart recovery status and the statistics derived from it."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from cart_whisperer.adapters.database.supabase_rest import SupabaseRestClient, eq, in_
from cart_whisperer.core.errors import NotFoundAppError
from cart_whisperer.schemas.carts import (
    CartRecoveryStats,
    EmailEngagementStats,
    RecoveryStatsResponse,
)
from cart_whisperer.services.tracking import EMAIL_EVENTS_TABLE

logger = logging.getLogger(__name__)

CARTS_TABLE = "carts"


def percentage(part: int, whole: int) -> float:
    """``part / whole`` in percent, rounded to two places; 0 for an empty whole."""
    return round(part / whole * 100, 2) if whole else 0.0


class CartService:
    def __init__(self, db: SupabaseRestClient) -> None:
        self.db = db

    async def mark_recovered(self, cart_id: str) -> None:
        """Flag a cart as recovered.

        Raises:
            NotFoundAppError: If no cart has this id.
        """
        updated = await self.db.update(
            CARTS_TABLE,
            {"recovered": True, "updated_at": datetime.now(timezone.utc).isoformat()},
            filters={"id": eq(cart_id)},
        )
        if not updated:
            raise NotFoundAppError(
                code="cart_not_found",
                message="Cart not found or could not be updated",
                details={"context": {"cart_id": cart_id}},
            )
        logger.info("cart.recovered", extra={"cart_id": cart_id})


class RecoveryStatsService:
    """Cart conversion and email engagement, optionally scoped to one store.

    Open and click events only carry the tracking id, so engagement is
    attributed to a store through the ``sent`` event of the same email.
    """

    def __init__(self, db: SupabaseRestClient) -> None:
        self.db = db

    async def cart_stats(self, store_id: str | None = None) -> CartRecoveryStats:
        scope = {"store_id": eq(store_id)} if store_id else {}
        total = await self.db.count(CARTS_TABLE, filters=scope)
        recovered = await self.db.count(
            CARTS_TABLE, filters={**scope, "recovered": eq(True)}
        )
        return CartRecoveryStats(
            total=total,
            recovered=recovered,
            conversion_rate=percentage(recovered, total),
        )

    async def email_stats(self, store_id: str | None = None) -> EmailEngagementStats:
        sent_filters = {"status": eq("sent")}
        if store_id:
            sent_filters["store_id"] = eq(store_id)
        sent_rows = await self.db.select(
            EMAIL_EVENTS_TABLE, filters=sent_filters, columns="tracking_id"
        )
        sent_ids = {row["tracking_id"] for row in sent_rows if row.get("tracking_id")}
        if not sent_ids:
            return EmailEngagementStats()

        # TODO: aggregate in a Postgres view once the id list outgrows a query string
        engagement_rows = await self.db.select(
            EMAIL_EVENTS_TABLE,
            filters={
                "status": in_(["opened", "clicked"]),
                "tracking_id": in_(sorted(sent_ids)),
            },
            columns="tracking_id,status",
        )
        opened = {r["tracking_id"] for r in engagement_rows if r.get("status") == "opened"}
        clicked = {r["tracking_id"] for r in engagement_rows if r.get("status") == "clicked"}

        sent = len(sent_ids)
        return EmailEngagementStats(
            sent=sent,
            opened=len(opened),
            clicked=len(clicked),
            open_rate=percentage(len(opened), sent),
            click_rate=percentage(len(clicked), sent),
        )

    async def summary(self, store_id: str | None = None) -> RecoveryStatsResponse:
        return RecoveryStatsResponse(
            store_id=store_id,
            carts=await self.cart_stats(store_id),
            emails=await self.email_stats(store_id),
        )
