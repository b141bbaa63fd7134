from abc import ABC, abstractmethod


class AbstractLLMClient(ABC):
	"""Interface for LLM clients that produce free-text completions."""

	@abstractmethod
	async def generate_text(
		self,
		*,
		system_prompt: str,
		user_prompt: str,
		temperature: float,
		max_tokens: int,
	) -> str:
		"""Generate a completion for a system/user prompt pair.

		Args:
			system_prompt: Instructions describing the assistant's role.
			user_prompt: Prompt with the customer and cart details filled in.
			temperature: Sampling temperature.
			max_tokens: Maximum tokens in the completion.

		Returns:
			str: Completion text, stripped of surrounding whitespace.

		Raises:
			LLMAppError: If the provider call fails or returns no content.
		"""
		...
