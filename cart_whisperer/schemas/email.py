"""Pydantic schemas for recovery email generation."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator


class CartItem(BaseModel):
    title: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)
    price: float = Field(..., ge=0, description="Unit price")
    image: str | None = Field(None, description="Product image URL")


class Customer(BaseModel):
    email: str = Field(..., min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    name: str | None = None


class Store(BaseModel):
    id: str | None = Field(None, description="Store id recorded on email events")
    name: str = Field("Our Store", min_length=1)


class Cart(BaseModel):
    id: str | None = None
    items: list[CartItem] = Field(..., min_length=1)
    total: float | None = Field(
        None,
        ge=0,
        description="Cart total; computed from the items when omitted",
    )
    recovery_url: str = Field(..., min_length=1)

    @property
    def total_price(self) -> float:
        if self.total is not None:
            return self.total
        return sum(item.price * item.quantity for item in self.items)


TemplateName = Literal["standard", "discount", "fomo"]


class AIPrompt(BaseModel):
    """Prompt pair used in AI mode.

    Both prompts may reference ``{{customer_name}}``, ``{{store_name}}``,
    ``{{cart_items}}``, ``{{cart_total}}`` and ``{{recovery_url}}``.
    """

    system_prompt: str = Field(..., min_length=1)
    user_prompt: str = Field(..., min_length=1)


class GenerateEmailRequest(BaseModel):
    customer: Customer
    store: Store = Field(default_factory=Store)
    cart: Cart
    mode: Literal["template", "ai"] = "template"
    template: TemplateName = "standard"
    discount_code: str = "COMEBACK15"
    discount_percent: str = "15%"
    prompt: AIPrompt | None = Field(
        None,
        description="Custom prompt for AI mode; the built-in prompt is used when omitted",
    )
    prompt_id: str | None = Field(
        None,
        description="Id of a saved prompt template to use in AI mode",
    )
    send_email: bool = False
    reply_to: str | None = None

    @model_validator(mode="after")
    def _prompt_only_for_ai(self) -> GenerateEmailRequest:
        if self.prompt is not None and self.prompt_id is not None:
            raise ValueError("give either prompt or prompt_id, not both")
        if (self.prompt is not None or self.prompt_id is not None) and self.mode != "ai":
            raise ValueError("prompt and prompt_id are only used with mode='ai'")
        return self


class GeneratedEmail(BaseModel):
    subject: str
    html: str


class GenerateEmailResponse(BaseModel):
    subject: str
    html: str
    sent: bool = False
    tracking_id: str | None = None
    email_id: str | None = None
