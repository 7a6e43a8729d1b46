"""
Response generation for accepted chat requests.

Responsibilities:
- Try each configured chat provider in order until one replies
- Recover total provider failure into a fixed localized reply
- Classify the reply into an Affect label
- Synthesize speech and analytics best-effort, alongside each other

Rules:
- generate() never raises for provider, synthesis or analytics errors
- Raw provider errors are logged, never returned
- A missing audio payload is a normal outcome, not an error

Non-responsibilities:
- No throttling
- No HTTP shaping
- No ordering (the client buffer owns that)
"""

from __future__ import annotations

import asyncio
import base64
from dataclasses import dataclass
from typing import Optional, Sequence

from adapters.llm.base import LLMAdapter
from adapters.llm.prompts import (
    CannedReply,
    build_system_prompt,
    canned_reply,
    prompt_tag,
)
from adapters.tts.base import TTSAdapter
from observability.logger import log_event
from observability.metrics import timed
from orchestrator.affect import AffectClassifier, KeywordAffectClassifier
from orchestrator.enums.affect import Affect
from orchestrator.enums.language import Language
from services.analytics_service import AnalyticsService, CaseAnalytics


@dataclass(frozen=True)
class GeneratedResponse:
    """
    Result of one generation.

    provider is the name of the provider that replied, or None when
    the message is a canned reply.
    """
    message: str
    affect: Affect
    audio_base64: Optional[str] = None
    analytics: Optional[CaseAnalytics] = None
    provider: Optional[str] = None


class ResponseGenerator:
    """
    Ordered provider chain plus best-effort enrichments.

    Chain semantics:
    - Providers are tried in the order given.
    - Each failure is caught and logged, then the next provider runs.
    - Empty chain: "no credentials" reply.
    - Exhausted chain: "small error" apology, Affect.IDLE, no audio.
    """

    def __init__(
        self,
        *,
        providers: Sequence[LLMAdapter],
        tts: Optional[TTSAdapter] = None,
        classifier: Optional[AffectClassifier] = None,
        analytics: Optional[AnalyticsService] = None,
    ) -> None:
        self._providers = tuple(providers)
        self._tts = tts
        self._classifier = classifier if classifier is not None else KeywordAffectClassifier()
        self._analytics = analytics if analytics is not None else AnalyticsService()

    @property
    def provider_names(self) -> list[str]:
        return [p.name for p in self._providers]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate(self, text: str, language: Language = Language.EN) -> GeneratedResponse:
        """Produce a reply for accepted text in the requested language."""
        if not self._providers:
            log_event({
                "event_type": "PROVIDER_CHAIN_EMPTY",
                "language": language.value,
            })
            return GeneratedResponse(
                message=canned_reply(CannedReply.NO_PROVIDERS, language),
                affect=Affect.IDLE,
            )

        provider_name, reply = await self._run_chain(text, language)

        if provider_name is None:
            log_event({
                "event_type": "PROVIDER_CHAIN_EXHAUSTED",
                "providers": self.provider_names,
                "language": language.value,
            })
            return GeneratedResponse(
                message=canned_reply(CannedReply.PROVIDERS_FAILED, language),
                affect=Affect.IDLE,
            )

        if not reply.strip():
            reply = canned_reply(CannedReply.EMPTY_COMPLETION, language)

        affect = self._classifier.classify(reply)

        audio_base64, analytics = await asyncio.gather(
            self._synthesize(reply),
            self._analyze(text, reply),
        )

        return GeneratedResponse(
            message=reply,
            affect=affect,
            audio_base64=audio_base64,
            analytics=analytics,
            provider=provider_name,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _run_chain(self, text: str, language: Language) -> tuple[Optional[str], str]:
        """
        Returns (provider_name, reply) from the first provider that
        answers, or (None, "") if every provider failed.
        """
        system_prompt = build_system_prompt(language)
        tag = prompt_tag(language)

        for provider in self._providers:
            try:
                with timed("llm_completion", provider=provider.name, prompt=tag) as extra:
                    reply = await provider.complete(system_prompt=system_prompt, user_text=text)
                    extra["chars"] = len(reply)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                log_event({
                    "event_type": "PROVIDER_FAILED",
                    "provider": provider.name,
                    "exception": type(exc).__name__,
                    "message": str(exc),
                })
                continue

            return provider.name, reply

        return None, ""

    async def _synthesize(self, reply: str) -> Optional[str]:
        if self._tts is None:
            return None

        try:
            with timed("tts_synthesis", provider=self._tts.name) as extra:
                audio = await self._tts.synthesize(reply)
                extra["bytes"] = len(audio)
                extra["media_type"] = self._tts.media_type
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "TTS_FAILED",
                "provider": self._tts.name,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            return None

        return base64.b64encode(audio).decode("ascii")

    async def _analyze(self, text: str, reply: str) -> Optional[CaseAnalytics]:
        try:
            return await self._analytics.analyze(text, reply)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "ANALYTICS_FAILED",
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            return None
