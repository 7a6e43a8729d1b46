# backend/protocol/chat.py
"""
Wire schema for the chat endpoint.

Request (POST /chat):
    {
      "content": str (1..2000 chars, required),
      "username": str (optional),
      "language": "en" | "zh" (default "en"),
      "walletAddress": str (optional)
    }

Success (200):
    {
      "userMessage": {id, message, sender: "user", username, timestamp},
      "czMessage":   {id, message, sender: "cz", timestamp, emotion, audioBase64?},
      "analytics":   object | null
    }

Throttled (429):  {"error": str, "remainingTime": int > 0}
Invalid (400):    {"error": str, "details"?: [...]}
Failure (500):    {"error": str, ...best-effort userMessage/czMessage}

Usage example:

    req = ChatRequest.model_validate(body)
    payload = build_success_payload(
        content=req.content,
        username=req.username,
        response=generated,
        now_ms=now_ms(),
    )
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from orchestrator.enums.affect import Affect
from orchestrator.enums.language import Language
from orchestrator.responder import GeneratedResponse
from spec import (
    CHAT_CONTENT_MAX_CHARS,
    CHAT_CONTENT_MIN_CHARS,
    DEFAULT_USERNAME,
)


# -------------------------
# Exceptions
# -------------------------

class ChatProtocolError(Exception):
    """Base class for chat protocol errors."""


class InvalidRequestBody(ChatProtocolError):
    """
    Body is missing or is not a JSON object.
    """


class ThrottleRejection(ChatProtocolError):
    """
    Session cooldown is active.

    remaining_seconds is the caller-displayable wait (> 0).
    """

    def __init__(self, remaining_seconds: int) -> None:
        super().__init__(throttle_message(remaining_seconds))
        self.remaining_seconds = remaining_seconds


# -------------------------
# Request
# -------------------------

class ChatRequest(BaseModel):
    """Validated chat request body."""

    model_config = ConfigDict(populate_by_name=True)

    content: str = Field(min_length=CHAT_CONTENT_MIN_CHARS, max_length=CHAT_CONTENT_MAX_CHARS)
    username: Optional[str] = None
    language: Language = Language.EN
    wallet_address: Optional[str] = Field(default=None, alias="walletAddress")


# -------------------------
# Response payloads
# -------------------------

def clock_label(moment: Optional[datetime] = None) -> str:
    """Local wall-clock time as HH:MM."""
    return (moment or datetime.now()).strftime("%H:%M")


def throttle_message(remaining_seconds: int) -> str:
    return f"Please wait {remaining_seconds} seconds before sending another message."


def build_user_message(
    *,
    content: str,
    username: Optional[str],
    now_ms: int,
    timestamp: Optional[str] = None,
) -> dict[str, Any]:
    return {
        "id": str(now_ms),
        "message": content,
        "sender": "user",
        "username": username or DEFAULT_USERNAME,
        "timestamp": timestamp or clock_label(),
    }


def build_cz_message(
    *,
    message: str,
    affect: Affect,
    now_ms: int,
    audio_base64: Optional[str] = None,
    timestamp: Optional[str] = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": str(now_ms + 1),
        "message": message,
        "sender": "cz",
        "timestamp": timestamp or clock_label(),
        "emotion": affect.value,
    }
    if audio_base64:
        payload["audioBase64"] = audio_base64
    return payload


def build_success_payload(
    *,
    content: str,
    username: Optional[str],
    response: GeneratedResponse,
    now_ms: int,
) -> dict[str, Any]:
    timestamp = clock_label()
    return {
        "userMessage": build_user_message(
            content=content,
            username=username,
            now_ms=now_ms,
            timestamp=timestamp,
        ),
        "czMessage": build_cz_message(
            message=response.message,
            affect=response.affect,
            now_ms=now_ms,
            audio_base64=response.audio_base64,
            timestamp=timestamp,
        ),
        "analytics": response.analytics.to_payload() if response.analytics else None,
    }


def build_failure_payload(
    *,
    error: str,
    content: str,
    username: Optional[str],
    now_ms: int,
) -> dict[str, Any]:
    """
    500 body that still renders as a normal exchange: the apology is
    both the error text and the assistant message.
    """
    timestamp = clock_label()
    return {
        "error": error,
        "userMessage": build_user_message(
            content=content,
            username=username,
            now_ms=now_ms,
            timestamp=timestamp,
        ),
        "czMessage": build_cz_message(
            message=error,
            affect=Affect.IDLE,
            now_ms=now_ms,
            timestamp=timestamp,
        ),
        "analytics": None,
    }


def build_throttle_payload(remaining_seconds: int) -> dict[str, Any]:
    return {
        "error": throttle_message(remaining_seconds),
        "remainingTime": remaining_seconds,
    }
