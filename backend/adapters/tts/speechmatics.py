"""
Speechmatics TTS adapter.

Implements one-shot Text-to-Speech using the Speechmatics Async TTS API.

Role in the system:
- Receives the full reply text.
- Performs one synthesis call.
- Returns a complete WAV file (16 kHz) as bytes.

Architectural constraints:
- No retries, timers, or fallback logic live in this adapter.
- No playback, queueing, or transport encoding.
- Errors are raised as SynthesisFailure; the caller decides to omit audio.
"""
from __future__ import annotations

from speechmatics.tts import AsyncClient, OutputFormat, Voice # pyright: ignore[reportMissingTypeStubs] # pylint: disable=no-name-in-module, import-error

from adapters.tts.base import SynthesisFailure, TTSAdapter
from spec import PROVIDER_CHUNK_SIZE


class SpeechmaticsTTSAdapter(TTSAdapter):
    """
    Speechmatics one-shot TTS adapter.

    A fresh AsyncClient is opened per call; the adapter itself is
    stateless and safe to share across requests.
    """

    name = "speechmatics"
    media_type = "audio/wav"

    _VOICE_MAP: dict[str, Voice] = {
        "sarah": Voice.SARAH,
        "theo": Voice.THEO,
        "megan": Voice.MEGAN,
    }

    def __init__(
        self,
        *,
        api_key: str,
        voice: str = "sarah",
    ) -> None:
        self._api_key = api_key
        self._voice = self._resolve_voice(voice)

    async def synthesize(self, text: str) -> bytes:
        try:
            audio = bytearray()
            async with AsyncClient(api_key=self._api_key) as client:
                async with await client.generate(
                    text=text,
                    voice=self._voice,
                    output_format=OutputFormat.WAV_16000,
                ) as response:
                    async for chunk in response.content.iter_chunked(PROVIDER_CHUNK_SIZE):
                        audio.extend(chunk)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise SynthesisFailure(self.name, f"{type(exc).__name__}: {exc}") from exc

        if not audio:
            raise SynthesisFailure(self.name, "empty audio")
        return bytes(audio)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @classmethod
    def _resolve_voice(cls, voice: str | None) -> Voice:
        """
        Convert user-facing voice string to Speechmatics Voice enum.

        Defaults to SARAH if unknown.
        """
        return cls._VOICE_MAP.get((voice or "").lower(), Voice.SARAH)
