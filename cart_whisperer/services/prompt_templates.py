"""Saved AI prompt templates, per merchant plus shared defaults.

A merchant sees their own templates and the default ones. Only the owner may
change or delete a template, and default templates are read-only.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from cart_whisperer.adapters.database.supabase_rest import SupabaseRestClient, eq
from cart_whisperer.core.errors import NotFoundAppError, PermissionAppError, UpstreamAppError
from cart_whisperer.schemas.prompts import (
    PromptTemplate,
    PromptTemplateCreate,
    PromptTemplateUpdate,
)

logger = logging.getLogger(__name__)

PROMPT_TEMPLATES_TABLE = "ai_prompt_templates"


def _not_found(template_id: str) -> NotFoundAppError:
    return NotFoundAppError(
        code="template_not_found",
        message="Template not found",
        details={"context": {"template_id": template_id}},
    )


def _first(rows: list[dict]) -> PromptTemplate | None:
    return PromptTemplate.model_validate(rows[0]) if rows else None


class PromptTemplateService:
    def __init__(self, db: SupabaseRestClient) -> None:
        self.db = db

    async def list_for_user(self, user_id: str) -> list[PromptTemplate]:
        """The user's templates and the defaults, newest first."""
        rows = await self.db.select(
            PROMPT_TEMPLATES_TABLE,
            filters={"or": f"(user_id.eq.{user_id},is_default.eq.true)"},
            order="created_at.desc",
        )
        return [PromptTemplate.model_validate(row) for row in rows]

    async def get_visible(self, user_id: str, template_id: str) -> PromptTemplate:
        """A template the user may use: their own or a default one.

        Raises:
            NotFoundAppError: If it does not exist or belongs to someone else.
        """
        template = await self._get(template_id)
        if template is None or not (template.is_default or template.user_id == user_id):
            raise _not_found(template_id)
        return template

    async def create(self, user_id: str, data: PromptTemplateCreate) -> PromptTemplate:
        row = {**data.model_dump(), "user_id": user_id, "is_default": False}
        template = _first(await self.db.insert(PROMPT_TEMPLATES_TABLE, row, returning=True))
        if template is None:
            raise UpstreamAppError(
                code="database_insert_failed",
                message=f"Could not insert {PROMPT_TEMPLATES_TABLE}",
            )
        logger.info(
            "prompt_template.created",
            extra={"template_id": template.id, "user_id": user_id},
        )
        return template

    async def update(
        self, user_id: str, template_id: str, changes: PromptTemplateUpdate
    ) -> PromptTemplate:
        await self._get_modifiable(user_id, template_id)
        values = {
            **changes.model_dump(exclude_unset=True),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        template = _first(
            await self.db.update(
                PROMPT_TEMPLATES_TABLE,
                values,
                filters={"id": eq(template_id), "user_id": eq(user_id)},
            )
        )
        # Deleted between the ownership check and the update
        if template is None:
            raise _not_found(template_id)
        logger.info(
            "prompt_template.updated",
            extra={"template_id": template_id, "fields": sorted(changes.model_fields_set)},
        )
        return template

    async def delete(self, user_id: str, template_id: str) -> None:
        await self._get_modifiable(user_id, template_id)
        deleted = await self.db.delete(
            PROMPT_TEMPLATES_TABLE,
            filters={"id": eq(template_id), "user_id": eq(user_id)},
        )
        if not deleted:
            raise _not_found(template_id)
        logger.info("prompt_template.deleted", extra={"template_id": template_id})

    async def _get(self, template_id: str) -> PromptTemplate | None:
        return _first(
            await self.db.select(
                PROMPT_TEMPLATES_TABLE, filters={"id": eq(template_id)}, limit=1
            )
        )

    async def _get_modifiable(self, user_id: str, template_id: str) -> PromptTemplate:
        template = await self._get(template_id)
        if template is None:
            raise _not_found(template_id)
        if template.user_id != user_id:
            raise PermissionAppError(
                code="template_not_owned",
                message="You don't have permission to modify this template",
            )
        if template.is_default:
            raise PermissionAppError(
                code="default_template_read_only",
                message="Default templates cannot be modified",
            )
        return template
