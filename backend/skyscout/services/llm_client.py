"""Unified LLM client — tries OpenAI first, falls back to Anthropic."""

import logging
from dataclasses import dataclass

from openai import AsyncOpenAI
import anthropic

from skyscout.config import settings

logger = logging.getLogger(__name__)


@dataclass
class LLMCompletion:
    text: str
    provider: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @property
    def cost_usd(self) -> float:
        return round(
            self.input_tokens / 1000 * settings.llm_cost_per_1k_input
            + self.output_tokens / 1000 * settings.llm_cost_per_1k_output,
            6,
        )


class LLMClient:
    """Unified async LLM client with OpenAI primary + Anthropic fallback."""

    def __init__(self, openai_api_key: str | None = None, anthropic_api_key: str | None = None):
        self._openai = None
        self._anthropic = None

        openai_api_key = settings.openai_api_key if openai_api_key is None else openai_api_key
        anthropic_api_key = settings.anthropic_api_key if anthropic_api_key is None else anthropic_api_key

        if openai_api_key:
            self._openai = AsyncOpenAI(api_key=openai_api_key)
        if anthropic_api_key:
            self._anthropic = anthropic.AsyncAnthropic(api_key=anthropic_api_key)

    @property
    def available(self) -> bool:
        return self._openai is not None or self._anthropic is not None

    async def complete(
        self,
        system: str,
        user: str,
        *,
        max_tokens: int = 1000,
        temperature: float = 0,
        json_mode: bool = False,
    ) -> LLMCompletion:
        """Get a completion from the best available LLM.

        Args:
            system: System prompt
            user: User message
            max_tokens: Max output tokens
            temperature: Sampling temperature
            json_mode: If True, force JSON output (OpenAI response_format)

        Returns:
            LLMCompletion with the raw text and token usage.

        Raises:
            RuntimeError if both providers fail.
        """
        errors = []
        chat_messages = [{"role": "user", "content": user}]

        # Try OpenAI first
        if self._openai:
            try:
                openai_messages = [{"role": "system", "content": system}] + chat_messages
                kwargs: dict = {
                    "model": settings.openai_model,
                    "max_tokens": max_tokens,
                    "temperature": temperature,
                    "messages": openai_messages,
                }
                if json_mode:
                    kwargs["response_format"] = {"type": "json_object"}
                response = await self._openai.chat.completions.create(**kwargs)
                usage = response.usage
                return LLMCompletion(
                    text=(response.choices[0].message.content or "").strip(),
                    provider="openai",
                    model=settings.openai_model,
                    input_tokens=usage.prompt_tokens if usage else 0,
                    output_tokens=usage.completion_tokens if usage else 0,
                )
            except Exception as e:
                errors.append(f"OpenAI: {e}")
                logger.warning(f"OpenAI failed, trying Anthropic: {e}")

        # Fallback to Anthropic
        if self._anthropic:
            try:
                response = await self._anthropic.messages.create(
                    model=settings.anthropic_model,
                    max_tokens=max_tokens,
                    temperature=temperature,
                    system=system,
                    messages=chat_messages,
                )
                return LLMCompletion(
                    text=response.content[0].text.strip(),
                    provider="anthropic",
                    model=settings.anthropic_model,
                    input_tokens=response.usage.input_tokens,
                    output_tokens=response.usage.output_tokens,
                )
            except Exception as e:
                errors.append(f"Anthropic: {e}")
                logger.warning(f"Anthropic also failed: {e}")

        if not errors:
            errors.append("no provider configured")
        raise RuntimeError(f"All LLM providers failed: {'; '.join(errors)}")


# Singleton
llm_client = LLMClient()
