"""FastAPI dependencies resolving the clients created at startup.

The application factory stores hosted-service clients on ``app.state``;
features whose service is not configured resolve to a 503 instead of failing
application startup.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from cart_whisperer.adapters.auth.base import AbstractAuthProvider
from cart_whisperer.adapters.database.supabase_rest import SupabaseRestClient
from cart_whisperer.core.config import settings
from cart_whisperer.core.errors import ConfigurationAppError
from cart_whisperer.services.carts import CartService, RecoveryStatsService
from cart_whisperer.services.email_generation import EmailGenerationService
from cart_whisperer.services.prompt_templates import PromptTemplateService
from cart_whisperer.services.recovery import RecoveryEmailService
from cart_whisperer.services.tracking import EmailEventRecorder


def get_auth_provider(request: Request) -> AbstractAuthProvider:
    provider = getattr(request.app.state, "auth_provider", None)
    if provider is None:
        raise ConfigurationAppError(
            code="auth_not_configured",
            message="Authentication requires SUPABASE_URL and SUPABASE_ANON_KEY",
        )
    return provider


def get_rest_client(request: Request) -> SupabaseRestClient:
    client = getattr(request.app.state, "rest_client", None)
    if client is None:
        raise ConfigurationAppError(
            code="database_not_configured",
            message="This feature requires SUPABASE_URL and SUPABASE_ANON_KEY",
        )
    return client


def get_event_recorder(request: Request) -> EmailEventRecorder:
    recorder = getattr(request.app.state, "event_recorder", None)
    if recorder is None:
        raise ConfigurationAppError(
            code="database_not_configured",
            message="Email tracking requires SUPABASE_URL and SUPABASE_ANON_KEY",
        )
    return recorder


def get_prompt_service(
    db: Annotated[SupabaseRestClient, Depends(get_rest_client)],
) -> PromptTemplateService:
    return PromptTemplateService(db)


def get_cart_service(
    db: Annotated[SupabaseRestClient, Depends(get_rest_client)],
) -> CartService:
    return CartService(db)


def get_stats_service(
    db: Annotated[SupabaseRestClient, Depends(get_rest_client)],
) -> RecoveryStatsService:
    return RecoveryStatsService(db)


def get_recovery_service(request: Request) -> RecoveryEmailService:
    state = request.app.state
    rest_client = getattr(state, "rest_client", None)
    generator = EmailGenerationService(
        getattr(state, "llm_client", None),
        settings.llm,
        PromptTemplateService(rest_client) if rest_client is not None else None,
    )
    return RecoveryEmailService(
        generator,
        email_client=getattr(state, "email_client", None),
        recorder=getattr(state, "event_recorder", None),
        host=settings.email.host,
    )
