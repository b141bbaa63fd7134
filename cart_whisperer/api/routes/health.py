from __future__ import annotations

from fastapi import APIRouter

from cart_whisperer.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check reporting which rate limit backend is active."""

    return {"status": "ok", "rate_limit_backend": settings.rate_limit.backend}
