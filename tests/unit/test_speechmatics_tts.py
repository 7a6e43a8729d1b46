# pylint: disable=missing-module-docstring,missing-function-docstring
import asyncio
from typing import Any

import pytest

from adapters.tts import speechmatics as speechmatics_module
from adapters.tts.base import SynthesisFailure
from adapters.tts.speechmatics import SpeechmaticsTTSAdapter


class FakeContent:
    def __init__(self, chunks: list[bytes]) -> None:
        self._chunks = chunks
        self.chunk_size: int | None = None

    async def iter_chunked(self, size: int):
        self.chunk_size = size
        for chunk in self._chunks:
            yield chunk


class FakeResponse:
    def __init__(self, chunks: list[bytes]) -> None:
        self.content = FakeContent(chunks)

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None


class FakeClient:
    instances: list["FakeClient"] = []
    chunks: list[bytes] = []
    error: Exception | None = None

    def __init__(self, *, api_key: str) -> None:
        self.api_key = api_key
        self.requests: list[dict[str, Any]] = []
        FakeClient.instances.append(self)

    async def __aenter__(self) -> "FakeClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None

    async def generate(self, **kwargs: Any) -> FakeResponse:
        self.requests.append(kwargs)
        if FakeClient.error is not None:
            raise FakeClient.error
        return FakeResponse(FakeClient.chunks)


@pytest.fixture
def fake_client(monkeypatch: pytest.MonkeyPatch) -> type[FakeClient]:
    FakeClient.instances = []
    FakeClient.chunks = [b"RIFF", b"....", b"WAVE"]
    FakeClient.error = None
    monkeypatch.setattr(speechmatics_module, "AsyncClient", FakeClient)
    return FakeClient


def test_chunks_are_joined_into_one_file(fake_client):
    adapter = SpeechmaticsTTSAdapter(api_key="sm_test", voice="Theo")

    audio = asyncio.run(adapter.synthesize("Hello"))

    assert audio == b"RIFF....WAVE"
    request = fake_client.instances[0].requests[0]
    assert request["text"] == "Hello"
    assert request["voice"] == speechmatics_module.Voice.THEO
    assert request["output_format"] == speechmatics_module.OutputFormat.WAV_16000
    assert adapter.media_type == "audio/wav"


def test_unknown_voice_falls_back_to_sarah(fake_client):
    adapter = SpeechmaticsTTSAdapter(api_key="sm_test", voice="nobody")

    asyncio.run(adapter.synthesize("Hi"))

    assert fake_client.instances[0].requests[0]["voice"] == speechmatics_module.Voice.SARAH


def test_empty_stream_is_a_failure(fake_client):
    fake_client.chunks = []
    adapter = SpeechmaticsTTSAdapter(api_key="sm_test")

    with pytest.raises(SynthesisFailure):
        asyncio.run(adapter.synthesize("Hi"))


def test_client_errors_are_wrapped(fake_client):
    fake_client.error = ConnectionError("down")
    adapter = SpeechmaticsTTSAdapter(api_key="sm_test")

    with pytest.raises(SynthesisFailure) as info:
        asyncio.run(adapter.synthesize("Hi"))

    assert info.value.provider == "speechmatics"
