"""LLM adapter layer - abstracts over completion providers."""

from cart_whisperer.adapters.llm.base import AbstractLLMClient
from cart_whisperer.adapters.llm.factory import create_llm_client
from cart_whisperer.adapters.llm.openai_client import OpenAIClient

__all__ = [
    "AbstractLLMClient",
    "OpenAIClient",
    "create_llm_client",
]
