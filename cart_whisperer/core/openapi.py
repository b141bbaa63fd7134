"""OpenAPI metadata: bearer security scheme and tag descriptions.

Operations that act on behalf of a merchant require a bearer token; sign-up,
sign-in, session, tracking and health endpoints are public and get ``security: []``.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

_PUBLIC_PATH_MARKERS = (
    "/health",
    "/auth/signin",
    "/auth/signup",
    "/auth/session",
    "/track/",
)

_TAGS = [
    {"name": "Auth", "description": "Merchant sign-up, sign-in, session and sign-out."},
    {"name": "Emails", "description": "Recovery email generation and delivery."},
    {"name": "Prompts", "description": "Saved AI prompt templates."},
    {"name": "Carts", "description": "Cart recovery status and statistics."},
    {"name": "Tracking", "description": "Open pixel and click redirects."},
    {"name": "Health", "description": "Liveness checks."},
]


def apply_openapi_customizations(app: FastAPI) -> None:
    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "BearerAuth",
            {
                "type": "http",
                "scheme": "bearer",
                "description": "Access token returned by POST /api/auth/signin.",
            },
        )
        schema.setdefault("security", [{"BearerAuth": []}])

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in _TAGS:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            if any(marker in path for marker in _PUBLIC_PATH_MARKERS):
                for method_obj in methods.values():
                    if isinstance(method_obj, dict):
                        method_obj["security"] = []

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
