"""
Anthropic Messages API adapter.

Used as the secondary provider when the OpenAI-compatible call fails.
"""
from __future__ import annotations

from typing import Any

from adapters.llm.base import LLMAdapter, ProviderFailure
from spec import LLM_MAX_TOKENS


class AnthropicMessagesAdapter(LLMAdapter):
    """
    Non-streaming completion over an AsyncAnthropic client.

    The Anthropic API takes the system prompt as a top-level field and
    returns a list of content blocks; the first text block is the reply.
    """

    name = "anthropic"

    def __init__(
        self,
        *,
        client: Any,
        model: str,
        max_tokens: int = LLM_MAX_TOKENS,
    ) -> None:
        self._client = client
        self._model = model
        self._max_tokens = max_tokens

    async def complete(self, *, system_prompt: str, user_text: str) -> str:
        try:
            message = await self._client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": user_text}],
            )
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise ProviderFailure(self.name, f"{type(exc).__name__}: {exc}") from exc

        return self._extract_text(message)

    @staticmethod
    def _extract_text(message: Any) -> str:
        for block in getattr(message, "content", None) or ():
            if getattr(block, "type", None) == "text":
                return getattr(block, "text", "") or ""
        return ""
