"""Recovery email generation: built-in templates or an LLM completion.

AI mode sends a system/user prompt pair to the LLM and expects the completion
to open with a ``SUBJECT:`` line followed by the HTML body.
"""

from __future__ import annotations

import logging
import re

from cart_whisperer.adapters.llm.base import AbstractLLMClient
from cart_whisperer.core.config import LLMSettings
from cart_whisperer.core.errors import (
    AuthenticationAppError,
    ConfigurationAppError,
    LLMAppError,
)
from cart_whisperer.schemas.email import AIPrompt, GeneratedEmail, GenerateEmailRequest
from cart_whisperer.services.email_templates import format_money, render_template
from cart_whisperer.services.prompt_templates import PromptTemplateService

logger = logging.getLogger(__name__)

SUBJECT_PREFIX = "SUBJECT:"

DEFAULT_PROMPT = AIPrompt(
    system_prompt=(
        "You are an expert e-commerce copywriter who writes short, friendly "
        "abandoned cart recovery emails. Answer with a first line of the form "
        "'SUBJECT: <subject line>' followed by the email body as simple HTML. "
        "Do not use markdown."
    ),
    user_prompt=(
        "Write a recovery email for {{customer_name}} who left these items in "
        "their cart at {{store_name}}: {{cart_items}}. The cart total is "
        "{{cart_total}}. Include a clear call to action linking to "
        "{{recovery_url}}."
    ),
)

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")
_CODE_FENCE = re.compile(r"^```(?:html)?\s*|\s*```$")


def prompt_variables(request: GenerateEmailRequest) -> dict[str, str]:
    """Values substituted into prompt placeholders."""
    return {
        "customer_name": request.customer.name or "Valued Customer",
        "customer_email": request.customer.email,
        "store_name": request.store.name,
        "cart_items": ", ".join(
            f"{item.quantity}x {item.title}" for item in request.cart.items
        ),
        "cart_total": format_money(request.cart.total_price),
        "recovery_url": request.cart.recovery_url,
    }


def fill_placeholders(text: str, variables: dict[str, str]) -> str:
    """Replace ``{{name}}`` placeholders; unknown names are left untouched."""
    return _PLACEHOLDER.sub(lambda m: variables.get(m.group(1), m.group(0)), text)


def parse_completion(completion: str, *, default_subject: str) -> GeneratedEmail:
    """Split an LLM completion into subject and HTML body.

    The first line starting with ``SUBJECT:`` provides the subject and is
    removed from the body. Without such a line the whole completion is the
    body and ``default_subject`` is used.
    """
    subject = default_subject
    body_lines: list[str] = []
    found = False
    for line in completion.splitlines():
        if not found and line.strip().upper().startswith(SUBJECT_PREFIX):
            candidate = line.strip()[len(SUBJECT_PREFIX):].strip()
            if candidate:
                subject = candidate
            found = True
            continue
        body_lines.append(line)

    body = _CODE_FENCE.sub("", "\n".join(body_lines).strip())
    return GeneratedEmail(subject=subject, html=body.strip())


class EmailGenerationService:
    """Produce subject and HTML for a recovery email.

    ``prompts`` resolves ``prompt_id`` to a saved template; it is None when
    the database is not configured.
    """

    def __init__(
        self,
        llm: AbstractLLMClient | None,
        llm_settings: LLMSettings,
        prompts: PromptTemplateService | None = None,
    ) -> None:
        self.llm = llm
        self.llm_settings = llm_settings
        self.prompts = prompts

    async def generate(
        self, request: GenerateEmailRequest, *, user_id: str | None = None
    ) -> GeneratedEmail:
        if request.mode == "ai":
            return await self._generate_with_ai(request, user_id)
        return render_template(request)

    async def _resolve_prompt(
        self, request: GenerateEmailRequest, user_id: str | None
    ) -> tuple[AIPrompt, str]:
        if request.prompt is not None:
            return request.prompt, "inline"
        if request.prompt_id is None:
            return DEFAULT_PROMPT, "default"
        if self.prompts is None:
            raise ConfigurationAppError(
                code="database_not_configured",
                message="Saved prompts require SUPABASE_URL and SUPABASE_ANON_KEY",
            )
        if user_id is None:
            raise AuthenticationAppError(
                code="missing_token",
                message="Saved prompts are only available to signed-in users",
            )
        template = await self.prompts.get_visible(user_id, request.prompt_id)
        return template.as_prompt(), "saved"

    async def _generate_with_ai(
        self, request: GenerateEmailRequest, user_id: str | None
    ) -> GeneratedEmail:
        if self.llm is None:
            raise LLMAppError(
                code="llm_not_configured",
                message="AI generation requires LLM_API_KEY to be configured",
            )

        prompt, prompt_source = await self._resolve_prompt(request, user_id)
        variables = prompt_variables(request)
        completion = await self.llm.generate_text(
            system_prompt=fill_placeholders(prompt.system_prompt, variables),
            user_prompt=fill_placeholders(prompt.user_prompt, variables),
            temperature=self.llm_settings.temperature,
            max_tokens=self.llm_settings.max_tokens,
        )

        email = parse_completion(
            completion,
            default_subject=f"Complete your purchase from {request.store.name}",
        )
        if not email.html:
            raise LLMAppError(
                code="llm_empty_body",
                message="The AI provider returned a subject without an email body",
            )

        logger.info(
            "email.generated",
            extra={
                "mode": "ai",
                "prompt_source": prompt_source,
                "body_chars": len(email.html),
            },
        )
        return email
