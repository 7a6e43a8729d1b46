"""
TTS adapter contract.

This module defines the *interface only*: no retries, no fallback,
no encoding for transport.

Key invariants:
- A synthesis failure never fails the chat response; the caller
  catches SynthesisFailure and omits the audio payload.
- Adapters return raw encoded audio bytes (MP3/WAV); base64 encoding
  for the wire happens upstream.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class SynthesisFailure(Exception):
    """Speech synthesis failed; the original exception is chained."""

    def __init__(self, provider: str, reason: str) -> None:
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason


class TTSAdapter(ABC):
    """
    Abstract interface for a one-shot (non-streaming) TTS adapter.

    Implementations are responsible for:
    - Calling the TTS provider for the full reply text
    - Returning a complete, browser-playable audio file

    Non-responsibilities:
    - No chunking (replies are short)
    - No playback or queueing
    - No direct interaction with HTTP or UI
    """

    #: Short provider name used in logs and metrics.
    name: str = "tts"

    #: MIME type of the returned audio.
    media_type: str = "audio/mpeg"

    @abstractmethod
    async def synthesize(self, text: str) -> bytes:
        """
        Synthesize text into one audio file.

        Contract:
        - Returns non-empty audio bytes.
        - Raises SynthesisFailure on any provider error or empty output.
        - The adapter MUST NOT retry internally.
        """
        raise NotImplementedError
