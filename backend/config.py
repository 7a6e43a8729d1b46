"""
Application configuration.

Responsibilities:
- Load deployment-specific configuration
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No orchestration logic
- No protocol constants
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from spec import (
    ANTHROPIC_DEFAULT_MODEL,
    CHAT_COOLDOWN_MS,
    GROQ_DEFAULT_MODEL,
    OPENAI_DEFAULT_MODEL,
    OPENAI_TTS_DEFAULT_MODEL,
    OPENAI_TTS_DEFAULT_VOICE,
)


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup.
    Passed downward to the app factory, which builds providers from it.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str = "dev"
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # LLM configuration
    # ------------------------------------------------------------------

    llm_provider: str = "openai"
    # None means the selected provider's default model
    llm_model: str | None = None
    openai_api_key: str | None = None
    groq_api_key: str | None = None

    anthropic_api_key: str | None = None
    anthropic_model: str = ANTHROPIC_DEFAULT_MODEL

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    enable_json_logs: bool = True

    # ------------------------------------------------------------------
    # TTS
    # ------------------------------------------------------------------
    tts_provider: str = "openai"
    openai_tts_model: str = OPENAI_TTS_DEFAULT_MODEL
    openai_tts_voice: str = OPENAI_TTS_DEFAULT_VOICE
    speechmatics_api_key: str | None = None
    speechmatics_voice: str | None = "sarah"

    # ------------------------------------------------------------------
    # Throttle
    # ------------------------------------------------------------------

    chat_cooldown_ms: int = CHAT_COOLDOWN_MS

    # ------------------------------------------------------------------
    # Derived
    # ------------------------------------------------------------------

    @property
    def primary_llm_api_key(self) -> str | None:
        """API key for the OpenAI-compatible primary provider."""
        if self.llm_provider.lower() == "groq":
            return self.groq_api_key
        return self.openai_api_key

    @property
    def chat_model(self) -> str:
        """Model for the primary provider: LLM_MODEL, else the provider default."""
        if self.llm_model:
            return self.llm_model
        if self.llm_provider.lower() == "groq":
            return GROQ_DEFAULT_MODEL
        return OPENAI_DEFAULT_MODEL

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Missing API keys are allowed: the corresponding provider is
        left out of the chain at app construction time.
        """
        return AppConfig(
            env=os.environ.get("ENV", "dev"),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),

            llm_provider=os.environ.get("LLM_PROVIDER", "openai"),
            llm_model=os.environ.get("LLM_MODEL") or None,
            openai_api_key=os.environ.get("OPENAI_API_KEY"),
            groq_api_key=os.environ.get("GROQ_API_KEY"),
            anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY"),
            anthropic_model=os.environ.get("ANTHROPIC_MODEL", ANTHROPIC_DEFAULT_MODEL),

            enable_json_logs=os.environ.get("ENABLE_JSON_LOGS", "1") == "1",

            tts_provider=os.environ.get("TTS_PROVIDER", "openai"),
            openai_tts_model=os.environ.get("OPENAI_TTS_MODEL", OPENAI_TTS_DEFAULT_MODEL),
            openai_tts_voice=os.environ.get("OPENAI_TTS_VOICE", OPENAI_TTS_DEFAULT_VOICE),
            speechmatics_api_key=os.environ.get("SPEECHMATICS_API_KEY"),
            speechmatics_voice=os.environ.get("SPEECHMATICS_VOICE", "sarah"),

            chat_cooldown_ms=int(os.environ.get("CHAT_COOLDOWN_MS", str(CHAT_COOLDOWN_MS))),
        )
