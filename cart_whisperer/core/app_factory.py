"""Application factory for the FastAPI app.

Hosted-service clients are built eagerly and stored on ``app.state`` so that
dependencies (and tests) can resolve or replace them; the lifespan only runs
background maintenance and releases connections on shutdown.
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager, suppress
from typing import AsyncIterator

import httpx
from fastapi import FastAPI

from cart_whisperer.adapters.auth.supabase import SupabaseAuthProvider
from cart_whisperer.adapters.database.supabase_rest import SupabaseRestClient
from cart_whisperer.adapters.email.resend_client import ResendEmailClient
from cart_whisperer.adapters.llm import create_llm_client
from cart_whisperer.adapters.rate_limit import (
    LocalRateLimitStore,
    create_rate_limit_store,
    resolve_backend_config,
)
from cart_whisperer.api.routes import (
    auth_router,
    carts_router,
    emails_router,
    health_router,
    prompts_router,
    tracking_router,
)
from cart_whisperer.core.config import Settings, settings
from cart_whisperer.core.exception_handlers import setup_exception_handlers
from cart_whisperer.core.logging import configure_logging
from cart_whisperer.core.middleware import request_id_middleware
from cart_whisperer.core.openapi import apply_openapi_customizations
from cart_whisperer.services.tracking import EmailEventRecorder

logger = logging.getLogger(__name__)


def _init_state(app: FastAPI, cfg: Settings) -> None:
    state = app.state
    state.http_clients = []
    state.sweep_interval_seconds = cfg.rate_limit.sweep_interval_seconds

    # Raises pydantic.ValidationError when the remote backend lacks credentials
    state.rate_limit_store = create_rate_limit_store(
        resolve_backend_config(cfg.rate_limit)
    )

    state.auth_provider = None
    state.rest_client = None
    state.event_recorder = None
    if cfg.supabase.url and cfg.supabase.anon_key:
        supabase_http = httpx.AsyncClient(
            base_url=cfg.supabase.url.rstrip("/"),
            timeout=cfg.supabase.timeout_seconds,
        )
        state.http_clients.append(supabase_http)
        state.auth_provider = SupabaseAuthProvider(
            supabase_http, anon_key=cfg.supabase.anon_key
        )
        state.rest_client = SupabaseRestClient(
            supabase_http, anon_key=cfg.supabase.anon_key
        )
        state.event_recorder = EmailEventRecorder(state.rest_client)
    else:
        logger.warning("app.supabase_not_configured")

    state.email_client = None
    if cfg.email.resend_api_key:
        resend_http = httpx.AsyncClient(
            base_url=cfg.email.api_base_url.rstrip("/"),
            timeout=cfg.email.timeout_seconds,
        )
        state.http_clients.append(resend_http)
        state.email_client = ResendEmailClient(
            resend_http,
            api_key=cfg.email.resend_api_key,
            default_from=cfg.email.from_address,
        )
    else:
        logger.warning("app.email_not_configured")

    state.llm_client = create_llm_client(cfg.llm) if cfg.llm.api_key else None
    if state.llm_client is None:
        logger.warning("app.llm_not_configured")


async def _sweep_periodically(store: LocalRateLimitStore, interval: int) -> None:
    while True:
        await asyncio.sleep(interval)
        store.sweep(time.time())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    store = app.state.rate_limit_store
    interval = app.state.sweep_interval_seconds
    sweeper: asyncio.Task | None = None
    if interval and isinstance(store, LocalRateLimitStore):
        sweeper = asyncio.create_task(_sweep_periodically(store, interval))

    try:
        yield
    finally:
        if sweeper is not None:
            sweeper.cancel()
            with suppress(asyncio.CancelledError):
                await sweeper
        await app.state.rate_limit_store.close()
        for client in app.state.http_clients:
            await client.aclose()
        logger.info("app.shutdown_complete")


def create_app(cfg: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        cfg: Settings to build hosted-service clients from. Defaults to the
            process-wide settings.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    cfg = cfg or settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    app = FastAPI(
        title="Cart Whisperer API",
        description=(
            "Abandoned cart recovery: template or AI-written recovery emails, "
            "delivery with open and click tracking, saved AI prompts, recovery "
            "statistics and merchant accounts. "
            "Endpoints are rate limited per client with a fixed window."
        ),
        version="0.1.0",
        lifespan=lifespan,
        debug=cfg.debug,
    )

    _init_state(app, cfg)

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(auth_router, prefix="/api")
    app.include_router(emails_router, prefix="/api")
    app.include_router(prompts_router, prefix="/api")
    app.include_router(carts_router, prefix="/api")
    app.include_router(tracking_router, prefix="/api")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
