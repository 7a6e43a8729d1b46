"""
Audio clip primitive.

Pure data container only.
No queues, no timing logic.
"""

from __future__ import annotations

from dataclasses import dataclass


# Base64 of "RIFF", the first four bytes of a WAV file
_WAV_PREFIX = "UklGR"


@dataclass(frozen=True)
class AudioClip:
    """
    One synthesized reply, as delivered by the chat endpoint.

    payload:
        Base64 text of a complete audio file (czMessage.audioBase64).

    media_type:
        MIME type of the decoded file.
    """
    payload: str
    media_type: str = "audio/mpeg"

    @classmethod
    def from_payload(cls, payload: str) -> AudioClip:
        """Wrap a reply's audio, telling WAV (Speechmatics) from MP3 (OpenAI)."""
        if payload.startswith(_WAV_PREFIX):
            return cls(payload=payload, media_type="audio/wav")
        return cls(payload=payload)
