"""
OpenAI-compatible chat completion adapter.

Serves OpenAI directly and any OpenAI-compatible vendor (Groq) via
the client's base_url.
"""
from __future__ import annotations

from typing import Any

from adapters.llm.base import LLMAdapter, ProviderFailure
from spec import LLM_MAX_TOKENS, LLM_TEMPERATURE


class OpenAIChatAdapter(LLMAdapter):
    """
    Non-streaming chat completion over an AsyncOpenAI client.

    Design notes:
    - One adapter instance serves every request; it holds no per-request
      state.
    - The vendor client is injected so tests can pass a fake.
    """

    def __init__(
        self,
        *,
        client: Any,
        model: str,
        provider: str = "openai",
        temperature: float = LLM_TEMPERATURE,
        max_tokens: int = LLM_MAX_TOKENS,
    ) -> None:
        """
        Args:
            client:
                Vendor client (AsyncOpenAI or compatible).
            model:
                Model identifier string.
            provider:
                Name used in logs ("openai", "groq").
        """
        self._client = client
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self.name = provider

    async def complete(self, *, system_prompt: str, user_text: str) -> str:
        try:
            completion = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_text},
                ],
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise ProviderFailure(self.name, f"{type(exc).__name__}: {exc}") from exc

        return self._extract_text(completion)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_text(completion: Any) -> str:
        """
        Extract reply text from vendor response (OpenAI format).
        """
        try:
            return completion.choices[0].message.content or ""
        except (AttributeError, IndexError):
            return ""
