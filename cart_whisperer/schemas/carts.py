"""Pydantic schemas for cart recovery status and statistics."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CartRecoveredResponse(BaseModel):
    success: bool = True
    cart_id: str


class CartRecoveryStats(BaseModel):
    total: int = 0
    recovered: int = 0
    conversion_rate: float = Field(0.0, description="Recovered carts as a percentage of all carts")


class EmailEngagementStats(BaseModel):
    """Counts of distinct sent emails, and of those that were opened or clicked."""

    sent: int = 0
    opened: int = 0
    clicked: int = 0
    open_rate: float = 0.0
    click_rate: float = 0.0


class RecoveryStatsResponse(BaseModel):
    store_id: str | None = None
    carts: CartRecoveryStats
    emails: EmailEngagementStats
