"""
Conversation event definitions (v1).

Rules:
- Events describe facts that have occurred.
- Events carry data only (no behavior).
- No clocks, no timers, no async, no side effects.

Ordering:
- UserEcho is emitted out-of-band the moment a send starts.
- AssistantReply, AnalyticsResult and ErrorNotice are attached to a
  sequence id and delivered through the pending-response buffer.
- PlaybackEnded is a lifecycle notification from the audio queue,
  not a conversation event.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Union

from orchestrator.enums.affect import Affect


# =============================================================================
# Event Type Enumeration
# =============================================================================

class EventType(str, Enum):
    """
    Canonical event types seen by chat consumers.
    """

    # ------------------------------------------------------------------
    # Conversation
    # ------------------------------------------------------------------
    USER_ECHO = "user_message"
    ASSISTANT_REPLY = "cz_message"
    ANALYTICS_RESULT = "case_analytics"
    ERROR_NOTICE = "error"

    # ------------------------------------------------------------------
    # Playback lifecycle
    # ------------------------------------------------------------------
    PLAYBACK_ENDED = "PLAYBACK_ENDED"


# =============================================================================
# Base Event
# =============================================================================

@dataclass(frozen=True)
class Event:
    """
    Base event type.

    All events must specify:
    - event_type: discriminant
    - ts_ms: timestamp provided by the source (or fake in tests)
    """

    event_type: EventType
    ts_ms: int


# =============================================================================
# Conversation Events
# =============================================================================

@dataclass(frozen=True)
class UserEcho(Event):
    """
    Optimistic echo of the user's own message.

    Never buffered: shown immediately so the UI feels responsive.
    """
    content: str
    display_name: str
    timestamp: str


@dataclass(frozen=True)
class AssistantReply(Event):
    """
    Assistant reply for one send.

    audio_payload is base64 text or None when synthesis was skipped
    or failed.
    """
    text: str
    affect: Affect
    audio_payload: Optional[str] = None
    message_id: Optional[str] = None
    timestamp: Optional[str] = None


@dataclass(frozen=True)
class AnalyticsResult(Event):
    """Opaque analytics record returned alongside a reply."""
    data: Mapping[str, Any]


@dataclass(frozen=True)
class ErrorNotice(Event):
    """
    Caller-displayable failure for one send.

    Replaces the reply in the ordered stream so later replies are
    never held back by a failed request.
    """
    message: str


ConversationEvent = Union[UserEcho, AssistantReply, AnalyticsResult, ErrorNotice]


# =============================================================================
# Playback Lifecycle
# =============================================================================

@dataclass(frozen=True)
class PlaybackEnded(Event):
    """
    A clip finished, failed, or the no-audio fallback elapsed.

    fallback=True marks the notification produced by the no-audio timer.
    failed=True marks a clip whose playback raised.
    """
    fallback: bool = False
    failed: bool = False
