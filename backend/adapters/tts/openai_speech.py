"""
OpenAI speech synthesis adapter (tts-1).
"""
from __future__ import annotations

from typing import Any

from adapters.tts.base import SynthesisFailure, TTSAdapter
from spec import OPENAI_TTS_DEFAULT_MODEL, OPENAI_TTS_DEFAULT_VOICE, TTS_SPEED


class OpenAISpeechAdapter(TTSAdapter):
    """Full-text MP3 synthesis over an AsyncOpenAI client."""

    name = "openai_tts"
    media_type = "audio/mpeg"

    def __init__(
        self,
        *,
        client: Any,
        model: str = OPENAI_TTS_DEFAULT_MODEL,
        voice: str = OPENAI_TTS_DEFAULT_VOICE,
        speed: float = TTS_SPEED,
    ) -> None:
        self._client = client
        self._model = model
        self._voice = voice
        self._speed = speed

    async def synthesize(self, text: str) -> bytes:
        try:
            response = await self._client.audio.speech.create(
                model=self._model,
                voice=self._voice,
                input=text,
                speed=self._speed,
                response_format="mp3",
            )
            audio = response.content
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise SynthesisFailure(self.name, f"{type(exc).__name__}: {exc}") from exc

        if not audio:
            raise SynthesisFailure(self.name, "empty audio")
        return audio
