# pylint: disable=missing-module-docstring,missing-function-docstring

import json
from typing import Any

import pytest

from observability import logger
from observability.metrics import timed


@pytest.fixture
def captured(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    lines: list[str] = []

    # Patch the explicit output sink used by logger
    monkeypatch.setattr(logger, "_print", lines.append)
    monkeypatch.setattr(logger, "_json_lines", True)
    return lines


def test_log_event_emits_valid_jsonl(captured: list[str]) -> None:
    """
    Contract:
    - log_event emits exactly one JSONL line
    - payload is serialized as-is, plus a ts_ms when missing
    - output sink is patchable
    """
    payload: dict[str, Any] = {
        "event_type": "TEST",
        "value": 123,
    }

    logger.log_event(payload)

    # Exactly one line emitted
    assert len(captured) == 1

    decoded = json.loads(captured[0])
    ts_ms = decoded.pop("ts_ms")

    assert isinstance(ts_ms, int)
    assert decoded == payload
    # Caller's mapping is not mutated
    assert "ts_ms" not in payload


def test_explicit_timestamp_is_kept(captured: list[str]) -> None:
    logger.log_event({"event_type": "TEST", "ts_ms": 42})

    assert json.loads(captured[0])["ts_ms"] == 42


def test_non_ascii_is_written_verbatim(captured: list[str]) -> None:
    logger.log_event({"event_type": "TEST", "text": "你好"})

    assert "你好" in captured[0]


def test_unserializable_event_falls_back(captured: list[str]) -> None:
    logger.log_event({"event_type": "TEST", "bad": object()})

    decoded = json.loads(captured[0])
    assert decoded["event_type"] == "LOGGER_SERIALIZATION_ERROR"
    assert "TEST" in decoded["original_event_repr"]


def test_text_mode_writes_key_value_line(captured: list[str]) -> None:
    logger.configure(json_lines=False)

    logger.log_event({"event_type": "THROTTLE_REJECTED", "remaining_s": 3, "ts_ms": 1})

    assert captured == ["THROTTLE_REJECTED remaining_s=3 ts_ms=1"]


# ---------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------

def test_timed_emits_one_metric_with_details(captured: list[str]) -> None:
    with timed("llm_completion", provider="openai") as extra:
        extra["chars"] = 12

    assert len(captured) == 1
    decoded = json.loads(captured[0])
    assert decoded["event_type"] == "METRIC_TIMER"
    assert decoded["metric"] == "llm_completion"
    assert decoded["value_ms"] >= 0
    assert decoded["details"] == {"provider": "openai", "chars": 12, "ok": True}


def test_timed_marks_failure_and_reraises(captured: list[str]) -> None:
    with pytest.raises(RuntimeError):
        with timed("tts_synthesis", provider="openai_tts"):
            raise RuntimeError("boom")

    decoded = json.loads(captured[0])
    assert decoded["details"]["ok"] is False
