"""
Chat gateway (server side).

Responsibilities:
- Apply the session throttle to each validated request
- Run response generation for admitted requests
- Shape every outcome into a (status, JSON body) result
- Log each decision

NOT responsible for:
- Parsing or validating the HTTP body (routes + protocol.chat)
- Provider fallback (orchestrator.responder)
- HTTP framing, headers, CORS
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from adapters.llm.prompts import CannedReply, canned_reply
from observability.logger import log_event
from orchestrator.responder import ResponseGenerator
from orchestrator.throttle import Reject, SessionThrottle
from protocol.chat import (
    ChatRequest,
    ThrottleRejection,
    build_failure_payload,
    build_success_payload,
    build_throttle_payload,
)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _now_ms() -> int:
    """Wall-clock milliseconds (message ids)."""
    return time.time_ns() // 1_000_000


# ------------------------------------------------------------------
# Gateway result
# ------------------------------------------------------------------

@dataclass(frozen=True)
class GatewayResult:
    """
    Return value for gateway boundary methods.

    status_code:
        HTTP status to send
    body:
        JSON-serializable response body
    """
    status_code: int
    body: dict[str, Any] = field(default_factory=dict)


# ------------------------------------------------------------------
# ChatGateway
# ------------------------------------------------------------------

class ChatGateway:
    """
    One gateway per process; shared by every request.

    The throttle decision is taken (and the window recorded) before
    generation starts, so a second send from the same session during a
    slow generation is rejected.
    """

    def __init__(
        self,
        *,
        throttle: SessionThrottle,
        responder: ResponseGenerator,
    ) -> None:
        self.throttle = throttle
        self.responder = responder

    async def handle_chat(self, request: ChatRequest, *, session_key: str) -> GatewayResult:
        """Throttle, generate, and shape one chat request."""
        try:
            self._admit(session_key)
        except ThrottleRejection as rejection:
            return GatewayResult(
                status_code=429,
                body=build_throttle_payload(rejection.remaining_seconds),
            )

        now_ms = _now_ms()

        try:
            response = await self.responder.generate(request.content, request.language)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            # generate() recovers provider errors itself; this is a bug guard
            log_event({
                "event_type": "CHAT_REQUEST_FAILED",
                "session_key": session_key,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            return GatewayResult(
                status_code=500,
                body=build_failure_payload(
                    error=canned_reply(CannedReply.SERVICE_UNAVAILABLE, request.language),
                    content=request.content,
                    username=request.username,
                    now_ms=now_ms,
                ),
            )

        log_event({
            "event_type": "CHAT_REPLY_READY",
            "session_key": session_key,
            "provider": response.provider,
            "emotion": response.affect.value,
            "has_audio": response.audio_base64 is not None,
        })

        return GatewayResult(
            status_code=200,
            body=build_success_payload(
                content=request.content,
                username=request.username,
                response=response,
                now_ms=now_ms,
            ),
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _admit(self, session_key: str) -> None:
        decision = self.throttle.admit(session_key)
        if isinstance(decision, Reject):
            raise ThrottleRejection(decision.remaining_seconds)
