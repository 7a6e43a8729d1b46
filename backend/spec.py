"""
SPEC-AS-CONSTANTS
-----------------
Single source of truth for all behavioral invariants in the system.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Final

# =============================================================================
# Request Validation
# =============================================================================

CHAT_CONTENT_MIN_CHARS: Final[int] = 1
CHAT_CONTENT_MAX_CHARS: Final[int] = 2_000

DEFAULT_USERNAME: Final[str] = "Anonymous"

# =============================================================================
# Session Throttle
# =============================================================================

CHAT_COOLDOWN_MS: Final[int] = 5_000

# Session key fallback when neither wallet nor peer address is known
SESSION_KEY_FALLBACK: Final[str] = "unknown"

# =============================================================================
# Response Generation
# =============================================================================

LLM_MAX_TOKENS: Final[int] = 200
LLM_TEMPERATURE: Final[float] = 0.8

OPENAI_DEFAULT_MODEL: Final[str] = "gpt-3.5-turbo"
GROQ_DEFAULT_MODEL: Final[str] = "llama-3.1-8b-instant"
ANTHROPIC_DEFAULT_MODEL: Final[str] = "claude-3-haiku-20240307"
GROQ_BASE_URL: Final[str] = "https://api.groq.com/openai/v1"

# =============================================================================
# Affect Classification
# =============================================================================

# A category must match at least this many keywords to leave "idle"
AFFECT_MIN_MATCHES: Final[int] = 2

# =============================================================================
# Speech Synthesis
# =============================================================================

OPENAI_TTS_DEFAULT_MODEL: Final[str] = "tts-1"
OPENAI_TTS_DEFAULT_VOICE: Final[str] = "echo"
TTS_SPEED: Final[float] = 1.0
PROVIDER_CHUNK_SIZE: Final[int] = 4096

# =============================================================================
# Client Playback
# =============================================================================

# Reply without audio still ends "speaking" after this delay
NO_AUDIO_FALLBACK_MS: Final[int] = 2_000

# =============================================================================
# Client Transport
# =============================================================================

CHAT_ENDPOINT_PATH: Final[str] = "/api/chat"

# Sequence ids start here and never repeat within one client instance
SEQUENCE_ID_START: Final[int] = 0

# =============================================================================
# LLM Prompt Versioning
# =============================================================================

SYSTEM_PROMPT_VERSION: Final[str] = "v1"
PROMPT_HASH_HEX_LEN: Final[int] = 8


# =============================================================================
# Helper Functions
# =============================================================================

def ms_to_seconds(duration_ms: int) -> float:
    """
    Convert milliseconds to seconds for asyncio timers.

    Defensive behavior:
    - Non-positive input returns 0.0.
    """
    if duration_ms <= 0:
        return 0.0
    return duration_ms / 1000.0
