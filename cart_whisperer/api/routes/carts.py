from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from cart_whisperer.adapters.auth.base import AuthUser
from cart_whisperer.core.auth import require_user
from cart_whisperer.core.dependencies import get_cart_service, get_stats_service
from cart_whisperer.schemas.carts import CartRecoveredResponse, RecoveryStatsResponse
from cart_whisperer.services.carts import CartService, RecoveryStatsService

router = APIRouter(tags=["Carts"])


@router.post("/cart/recover/{cart_id}", response_model=CartRecoveredResponse)
async def mark_cart_recovered(
    cart_id: str,
    user: Annotated[AuthUser, Depends(require_user)],
    service: Annotated[CartService, Depends(get_cart_service)],
) -> CartRecoveredResponse:
    """Flag an abandoned cart as recovered, e.g. once its order is placed."""
    await service.mark_recovered(cart_id)
    return CartRecoveredResponse(cart_id=cart_id)


@router.get("/stats/recovery", response_model=RecoveryStatsResponse)
async def recovery_stats(
    user: Annotated[AuthUser, Depends(require_user)],
    service: Annotated[RecoveryStatsService, Depends(get_stats_service)],
    store_id: Annotated[str | None, Query(min_length=1)] = None,
) -> RecoveryStatsResponse:
    """Cart conversion and email open/click rates, for one store or overall."""
    return await service.summary(store_id)
