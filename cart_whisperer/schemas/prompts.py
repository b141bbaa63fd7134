"""Pydantic schemas for saved AI prompt templates."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from cart_whisperer.schemas.email import AIPrompt


class PromptTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    system_prompt: str = Field(..., min_length=1)
    user_prompt: str = Field(..., min_length=1)


class PromptTemplateUpdate(BaseModel):
    """Partial update; at least one field must be given."""

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    system_prompt: str | None = Field(None, min_length=1)
    user_prompt: str | None = Field(None, min_length=1)

    @model_validator(mode="after")
    def _not_empty(self) -> PromptTemplateUpdate:
        if not self.model_fields_set:
            raise ValueError("at least one field must be provided")
        for name in ("name", "system_prompt", "user_prompt"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class PromptTemplate(BaseModel):
    """A stored row of ``ai_prompt_templates``.

    Default templates are shared by every merchant and cannot be changed;
    their ``user_id`` is usually null.
    """

    id: str
    user_id: str | None = None
    name: str
    description: str | None = None
    system_prompt: str
    user_prompt: str
    is_default: bool = False
    created_at: str | None = None
    updated_at: str | None = None

    def as_prompt(self) -> AIPrompt:
        return AIPrompt(system_prompt=self.system_prompt, user_prompt=self.user_prompt)


class PromptTemplateListResponse(BaseModel):
    templates: list[PromptTemplate]


class PromptTemplateResponse(BaseModel):
    success: bool = True
    template: PromptTemplate
