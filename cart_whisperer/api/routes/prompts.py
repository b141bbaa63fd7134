from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from cart_whisperer.adapters.auth.base import AuthUser
from cart_whisperer.core.auth import require_user
from cart_whisperer.core.dependencies import get_prompt_service
from cart_whisperer.schemas.prompts import (
    PromptTemplateCreate,
    PromptTemplateListResponse,
    PromptTemplateResponse,
    PromptTemplateUpdate,
)
from cart_whisperer.services.prompt_templates import PromptTemplateService

router = APIRouter(prefix="/ai-prompts", tags=["Prompts"])

PromptService = Annotated[PromptTemplateService, Depends(get_prompt_service)]
CurrentUser = Annotated[AuthUser, Depends(require_user)]


@router.get("", response_model=PromptTemplateListResponse)
async def list_prompt_templates(
    user: CurrentUser, service: PromptService
) -> PromptTemplateListResponse:
    """The caller's saved prompts followed by the shared defaults, newest first."""
    return PromptTemplateListResponse(templates=await service.list_for_user(user.id))


@router.post("", response_model=PromptTemplateResponse)
async def create_prompt_template(
    body: PromptTemplateCreate, user: CurrentUser, service: PromptService
) -> PromptTemplateResponse:
    return PromptTemplateResponse(template=await service.create(user.id, body))


@router.put("/{template_id}", response_model=PromptTemplateResponse)
async def update_prompt_template(
    template_id: str,
    body: PromptTemplateUpdate,
    user: CurrentUser,
    service: PromptService,
) -> PromptTemplateResponse:
    """Change a template owned by the caller. Default templates are read-only."""
    return PromptTemplateResponse(
        template=await service.update(user.id, template_id, body)
    )


@router.delete("/{template_id}")
async def delete_prompt_template(
    template_id: str, user: CurrentUser, service: PromptService
) -> dict:
    await service.delete(user.id, template_id)
    return {"success": True}
