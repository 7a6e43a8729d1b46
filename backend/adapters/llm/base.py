"""
LLM adapter contract (v1).

Purpose:
- Define the interface for one-shot chat completions.
- Keep fallback ordering, classification and synthesis OUT of the
  adapter.

Rules:
- This file contains NO logic.
- No retries.
- No fallback to other providers.
- No knowledge of TTS, UI, or throttling.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class ProviderFailure(Exception):
    """
    A chat-completion provider could not produce a reply.

    Carries the provider name; the original exception is chained.
    """

    def __init__(self, provider: str, reason: str) -> None:
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason


class LLMAdapter(ABC):
    """
    Abstract base class for chat-completion adapters.

    The adapter is a *dumb pipe*:
    prompt -> vendor -> reply text.

    Orchestrator responsibilities (NOT here):
    - Which provider to try next
    - What to say when every provider fails
    - Affect classification
    - Speech synthesis
    """

    #: Short provider name used in logs and metrics.
    name: str = "llm"

    @abstractmethod
    async def complete(self, *, system_prompt: str, user_text: str) -> str:
        """
        Produce a single reply for user_text.

        Contract:
        - Returns the reply text; may be "" if the vendor returned no
          content (the caller decides what to show instead).
        - Raises ProviderFailure on any vendor or transport error.
        - Must NOT retry internally.
        - Must NOT call another provider.

        Args:
            system_prompt:
                Fully resolved system prompt (language instruction included).
            user_text:
                The validated user message.
        """
        raise NotImplementedError
