# pylint: disable=missing-module-docstring,missing-function-docstring
import asyncio
import base64
import json
from typing import Any, Optional

import pytest

from adapters.llm.base import LLMAdapter, ProviderFailure
from adapters.llm.prompts import CannedReply, canned_reply
from adapters.tts.base import SynthesisFailure, TTSAdapter
from observability import logger
from orchestrator.enums.affect import Affect
from orchestrator.enums.language import Language
from orchestrator.responder import ResponseGenerator
from services.analytics_service import AnalyticsService, CaseAnalytics


# ---------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------

class FakeProvider(LLMAdapter):
    def __init__(self, name: str, reply: str = "", *, fail: bool = False) -> None:
        self.name = name
        self._reply = reply
        self._fail = fail
        self.calls: list[dict[str, str]] = []

    async def complete(self, *, system_prompt: str, user_text: str) -> str:
        self.calls.append({"system_prompt": system_prompt, "user_text": user_text})
        if self._fail:
            raise ProviderFailure(self.name, "quota exceeded")
        return self._reply


class FakeTTS(TTSAdapter):
    name = "fake_tts"

    def __init__(self, audio: bytes = b"ID3fake", *, fail: bool = False) -> None:
        self._audio = audio
        self._fail = fail
        self.texts: list[str] = []

    async def synthesize(self, text: str) -> bytes:
        self.texts.append(text)
        if self._fail:
            raise SynthesisFailure(self.name, "voice unavailable")
        return self._audio


class FixedAnalytics(AnalyticsService):
    async def analyze(self, user_text: str, reply_text: str) -> Optional[CaseAnalytics]:
        return CaseAnalytics(case_strength=70, success_probability=60, risk_level="medium")


class BrokenAnalytics(AnalyticsService):
    async def analyze(self, user_text: str, reply_text: str) -> Optional[CaseAnalytics]:
        raise RuntimeError("analytics backend down")


@pytest.fixture
def captured(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    lines: list[dict[str, Any]] = []
    monkeypatch.setattr(logger, "_print", lambda line: lines.append(json.loads(line)))
    monkeypatch.setattr(logger, "_json_lines", True)
    return lines


def generate(responder: ResponseGenerator, text: str = "Hello", language: Language = Language.EN):
    return asyncio.run(responder.generate(text, language))


# ---------------------------------------------------------------------
# Provider chain
# ---------------------------------------------------------------------

def test_first_provider_reply_is_used():
    primary = FakeProvider("openai", "Hi there!")
    secondary = FakeProvider("anthropic", "unused")
    responder = ResponseGenerator(providers=[primary, secondary])

    result = generate(responder)

    assert result.message == "Hi there!"
    assert result.provider == "openai"
    assert secondary.calls == []


def test_failed_provider_falls_through_to_next(captured):
    primary = FakeProvider("openai", fail=True)
    secondary = FakeProvider("anthropic", "Backup reply")
    responder = ResponseGenerator(providers=[primary, secondary])

    result = generate(responder)

    assert result.message == "Backup reply"
    assert result.provider == "anthropic"
    failures = [e for e in captured if e["event_type"] == "PROVIDER_FAILED"]
    assert [f["provider"] for f in failures] == ["openai"]


def test_exhausted_chain_returns_localized_apology_without_audio():
    tts = FakeTTS()
    responder = ResponseGenerator(
        providers=[FakeProvider("openai", fail=True), FakeProvider("anthropic", fail=True)],
        tts=tts,
    )

    result = generate(responder, language=Language.ZH)

    assert result.message == canned_reply(CannedReply.PROVIDERS_FAILED, Language.ZH)
    assert result.affect is Affect.IDLE
    assert result.audio_base64 is None
    assert result.provider is None
    assert tts.texts == []


def test_empty_chain_returns_configuration_reply():
    responder = ResponseGenerator(providers=[])

    result = generate(responder)

    assert result.message == canned_reply(CannedReply.NO_PROVIDERS, Language.EN)
    assert result.affect is Affect.IDLE


def test_empty_completion_is_replaced():
    responder = ResponseGenerator(providers=[FakeProvider("openai", "   ")])

    result = generate(responder)

    assert result.message == canned_reply(CannedReply.EMPTY_COMPLETION, Language.EN)
    assert result.provider == "openai"


def test_system_prompt_carries_language_instruction():
    provider = FakeProvider("openai", "好的")
    responder = ResponseGenerator(providers=[provider])

    generate(responder, text="你好", language=Language.ZH)

    call = provider.calls[0]
    assert call["user_text"] == "你好"
    assert "Chinese" in call["system_prompt"]


# ---------------------------------------------------------------------
# Enrichments
# ---------------------------------------------------------------------

def test_reply_is_classified():
    provider = FakeProvider("openai", "Congratulations, excellent result!")
    responder = ResponseGenerator(providers=[provider])

    assert generate(responder).affect is Affect.APPROVING


def test_audio_is_base64_of_synthesized_bytes():
    tts = FakeTTS(audio=b"\x00\x01mp3")
    responder = ResponseGenerator(providers=[FakeProvider("openai", "Hi")], tts=tts)

    result = generate(responder)

    assert tts.texts == ["Hi"]
    assert result.audio_base64 is not None
    assert base64.b64decode(result.audio_base64) == b"\x00\x01mp3"


def test_synthesis_failure_omits_audio_only(captured):
    responder = ResponseGenerator(
        providers=[FakeProvider("openai", "Hi")],
        tts=FakeTTS(fail=True),
    )

    result = generate(responder)

    assert result.message == "Hi"
    assert result.audio_base64 is None
    assert any(e["event_type"] == "TTS_FAILED" for e in captured)


def test_analytics_attached_when_available():
    responder = ResponseGenerator(
        providers=[FakeProvider("openai", "Hi")],
        analytics=FixedAnalytics(),
    )

    result = generate(responder)

    assert result.analytics is not None
    assert result.analytics.to_payload()["riskLevel"] == "medium"


def test_analytics_failure_is_recovered():
    responder = ResponseGenerator(
        providers=[FakeProvider("openai", "Hi")],
        analytics=BrokenAnalytics(),
    )

    result = generate(responder)

    assert result.message == "Hi"
    assert result.analytics is None


def test_completion_timing_is_logged(captured):
    responder = ResponseGenerator(providers=[FakeProvider("openai", "Hi")])

    generate(responder)

    timers = [e for e in captured if e["event_type"] == "METRIC_TIMER"]
    assert timers[0]["metric"] == "llm_completion"
    assert timers[0]["details"]["provider"] == "openai"
    assert timers[0]["details"]["ok"] is True
    assert timers[0]["details"]["prompt"].startswith("v1:en:")
