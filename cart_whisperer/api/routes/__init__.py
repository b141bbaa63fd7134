from __future__ import annotations

from cart_whisperer.api.routes.auth import router as auth_router
from cart_whisperer.api.routes.carts import router as carts_router
from cart_whisperer.api.routes.emails import router as emails_router
from cart_whisperer.api.routes.health import router as health_router
from cart_whisperer.api.routes.prompts import router as prompts_router
from cart_whisperer.api.routes.tracking import router as tracking_router

__all__ = [
    "auth_router",
    "carts_router",
    "emails_router",
    "health_router",
    "prompts_router",
    "tracking_router",
]
