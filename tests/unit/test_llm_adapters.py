# pylint: disable=missing-module-docstring,missing-function-docstring
import asyncio
from types import SimpleNamespace
from typing import Any

import pytest

from adapters.llm.anthropic_messages import AnthropicMessagesAdapter
from adapters.llm.base import ProviderFailure
from adapters.llm.openai_chat import OpenAIChatAdapter
from adapters.llm.prompts import (
    CANNED_REPLIES,
    CannedReply,
    build_system_prompt,
    prompt_hash,
    prompt_tag,
)
from adapters.tts.base import SynthesisFailure
from adapters.tts.openai_speech import OpenAISpeechAdapter
from orchestrator.enums.language import Language


# ---------------------------------------------------------------------
# Fake vendor clients
# ---------------------------------------------------------------------

class FakeCompletions:
    def __init__(self, result: Any = None, error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.kwargs: dict[str, Any] = {}

    async def create(self, **kwargs: Any) -> Any:
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return self.result


def openai_client(completions: FakeCompletions) -> Any:
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def openai_completion(content: str | None) -> Any:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def anthropic_client(messages: FakeCompletions) -> Any:
    return SimpleNamespace(messages=messages)


def speech_client(speech: FakeCompletions) -> Any:
    return SimpleNamespace(audio=SimpleNamespace(speech=speech))


# ---------------------------------------------------------------------
# OpenAI-compatible chat
# ---------------------------------------------------------------------

def test_openai_adapter_sends_system_and_user_messages():
    completions = FakeCompletions(result=openai_completion("Hi!"))
    adapter = OpenAIChatAdapter(client=openai_client(completions), model="gpt-3.5-turbo")

    reply = asyncio.run(adapter.complete(system_prompt="persona", user_text="hello"))

    assert reply == "Hi!"
    assert completions.kwargs == {
        "model": "gpt-3.5-turbo",
        "messages": [
            {"role": "system", "content": "persona"},
            {"role": "user", "content": "hello"},
        ],
        "temperature": 0.8,
        "max_tokens": 200,
    }


def test_openai_adapter_treats_missing_content_as_empty():
    completions = FakeCompletions(result=openai_completion(None))
    adapter = OpenAIChatAdapter(client=openai_client(completions), model="m")

    assert asyncio.run(adapter.complete(system_prompt="p", user_text="u")) == ""


def test_openai_adapter_wraps_vendor_errors_with_provider_name():
    completions = FakeCompletions(error=ConnectionError("reset"))
    adapter = OpenAIChatAdapter(client=openai_client(completions), model="m", provider="groq")

    with pytest.raises(ProviderFailure) as info:
        asyncio.run(adapter.complete(system_prompt="p", user_text="u"))

    assert info.value.provider == "groq"
    assert adapter.name == "groq"
    assert isinstance(info.value.__cause__, ConnectionError)


# ---------------------------------------------------------------------
# Anthropic
# ---------------------------------------------------------------------

def test_anthropic_adapter_passes_system_prompt_top_level():
    message = SimpleNamespace(content=[
        SimpleNamespace(type="tool_use"),
        SimpleNamespace(type="text", text="Bonjour"),
    ])
    messages = FakeCompletions(result=message)
    adapter = AnthropicMessagesAdapter(client=anthropic_client(messages), model="claude-3-haiku-20240307")

    reply = asyncio.run(adapter.complete(system_prompt="persona", user_text="hello"))

    assert reply == "Bonjour"
    assert messages.kwargs["system"] == "persona"
    assert messages.kwargs["messages"] == [{"role": "user", "content": "hello"}]
    assert messages.kwargs["max_tokens"] == 200


def test_anthropic_adapter_without_text_block_returns_empty():
    messages = FakeCompletions(result=SimpleNamespace(content=[]))
    adapter = AnthropicMessagesAdapter(client=anthropic_client(messages), model="m")

    assert asyncio.run(adapter.complete(system_prompt="p", user_text="u")) == ""


def test_anthropic_adapter_wraps_errors():
    messages = FakeCompletions(error=RuntimeError("overloaded"))
    adapter = AnthropicMessagesAdapter(client=anthropic_client(messages), model="m")

    with pytest.raises(ProviderFailure) as info:
        asyncio.run(adapter.complete(system_prompt="p", user_text="u"))

    assert info.value.provider == "anthropic"


# ---------------------------------------------------------------------
# OpenAI speech
# ---------------------------------------------------------------------

def test_speech_adapter_returns_mp3_bytes():
    speech = FakeCompletions(result=SimpleNamespace(content=b"ID3audio"))
    adapter = OpenAISpeechAdapter(client=speech_client(speech))

    audio = asyncio.run(adapter.synthesize("Hello"))

    assert audio == b"ID3audio"
    assert speech.kwargs == {
        "model": "tts-1",
        "voice": "echo",
        "input": "Hello",
        "speed": 1.0,
        "response_format": "mp3",
    }


def test_speech_adapter_rejects_empty_audio():
    speech = FakeCompletions(result=SimpleNamespace(content=b""))
    adapter = OpenAISpeechAdapter(client=speech_client(speech))

    with pytest.raises(SynthesisFailure):
        asyncio.run(adapter.synthesize("Hello"))


def test_speech_adapter_wraps_errors():
    speech = FakeCompletions(error=TimeoutError())
    adapter = OpenAISpeechAdapter(client=speech_client(speech))

    with pytest.raises(SynthesisFailure) as info:
        asyncio.run(adapter.synthesize("Hello"))

    assert info.value.provider == "openai_tts"


# ---------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------

@pytest.mark.parametrize("language", list(Language))
def test_system_prompt_is_filled_for_every_language(language):
    prompt = build_system_prompt(language)

    assert "{language_instruction}" not in prompt
    assert "CZ Judge Companion" in prompt


def test_prompt_tag_is_stable_and_language_specific():
    assert prompt_tag(Language.EN) == prompt_tag(Language.EN)
    assert prompt_tag(Language.EN) != prompt_tag(Language.ZH)
    assert len(prompt_hash("abc")) == 8


def test_every_canned_reply_is_localized():
    for kind in CannedReply:
        assert set(CANNED_REPLIES[kind]) == set(Language)
