"""
HTTP transport for the chat client.

Responsibilities:
- POST one chat request to the server
- Turn every non-reply outcome into TransportFailure
- Return the parsed reply payload otherwise

Non-responsibilities:
- No ordering (ChatSession + PendingResponseBuffer)
- No retries
- No timeout of its own: a request that never resolves stalls
  delivery of later replies (see orchestrator.sequencing)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

import httpx

from observability.logger import log_event
from orchestrator.enums.language import Language
from spec import CHAT_ENDPOINT_PATH


class TransportFailure(Exception):
    """
    The request did not produce a reply.

    message is caller-displayable (server "error" text when available).
    status_code is None for network-level failures.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        remaining_seconds: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.remaining_seconds = remaining_seconds

    @property
    def throttled(self) -> bool:
        return self.status_code == 429


@dataclass(frozen=True)
class ChatReplyPayload:
    """
    Parsed reply body.

    degraded is True when the server answered 5xx but still embedded a
    displayable czMessage (localized apology).
    """
    user_message: Mapping[str, Any]
    cz_message: Mapping[str, Any]
    analytics: Optional[Mapping[str, Any]]
    degraded: bool = False


class ChatTransport:
    """
    Thin httpx wrapper around POST /api/chat.

    The httpx client is injectable so tests can mount a MockTransport
    or the ASGI app directly.
    """

    def __init__(
        self,
        *,
        base_url: str = "",
        client: Optional[httpx.AsyncClient] = None,
        path: str = CHAT_ENDPOINT_PATH,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=None)
        self._path = path

    async def post_chat(
        self,
        *,
        content: str,
        username: Optional[str] = None,
        language: Language = Language.EN,
        wallet_address: Optional[str] = None,
    ) -> ChatReplyPayload:
        """Send one message; raise TransportFailure unless a reply came back."""
        body: dict[str, Any] = {
            "content": content,
            "language": language.value,
        }
        if username is not None:
            body["username"] = username
        if wallet_address is not None:
            body["walletAddress"] = wallet_address

        try:
            response = await self._client.post(self._path, json=body)
        except httpx.HTTPError as exc:
            log_event({
                "event_type": "TRANSPORT_ERROR",
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            raise TransportFailure("Failed to send message") from exc

        data = self._parse_json(response)

        if response.is_success:
            if data is None:
                raise TransportFailure(
                    "Invalid response from server. Please try again.",
                    status_code=response.status_code,
                )
            return self._to_reply(data, degraded=False, status_code=response.status_code)

        data = data or {}

        if response.status_code == 429:
            raise TransportFailure(
                str(data.get("error") or "Please wait before sending another message."),
                status_code=429,
                remaining_seconds=data.get("remainingTime"),
            )

        if response.status_code >= 500 and data.get("czMessage"):
            return self._to_reply(data, degraded=True, status_code=response.status_code)

        raise TransportFailure(
            str(data.get("error") or "Failed to send message"),
            status_code=response.status_code,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_json(response: httpx.Response) -> Optional[dict[str, Any]]:
        """JSON object body, or None if the body is not a JSON object."""
        if "application/json" not in response.headers.get("content-type", ""):
            return None
        try:
            data = response.json()
        except ValueError:
            return None
        return data if isinstance(data, dict) else None

    @staticmethod
    def _to_reply(data: Mapping[str, Any], *, degraded: bool, status_code: int) -> ChatReplyPayload:
        cz_message = data.get("czMessage")
        if not isinstance(cz_message, Mapping) or "message" not in cz_message:
            raise TransportFailure(
                "Invalid response from server. Please try again.",
                status_code=status_code,
            )

        analytics = data.get("analytics")
        return ChatReplyPayload(
            user_message=data.get("userMessage") or {},
            cz_message=cz_message,
            analytics=analytics if isinstance(analytics, Mapping) else None,
            degraded=degraded,
        )
