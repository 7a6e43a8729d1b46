"""
Chat session controller (client side).

Responsibilities:
- Assign a sequence id to every send
- Emit the optimistic UserEcho immediately
- Run the network exchange and buffer its result by sequence id
- Deliver replies/errors to subscribers in send order
- Feed delivered replies into the audio playback queue
- Track the avatar affect (reply label while speaking, idle after)

The controller owns all state; UI code only subscribes.

Threading:
- Single event loop. Delivery is synchronous and completes before the
  next buffered result can be enqueued.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional
from uuid import uuid4

from audio.clips import AudioClip
from audio.playback import AudioPlaybackQueue, AudioSink
from observability.logger import log_event, now_ms
from orchestrator.enums.affect import Affect
from orchestrator.enums.language import Language
from orchestrator.events import (
    AnalyticsResult,
    AssistantReply,
    ConversationEvent,
    ErrorNotice,
    EventType,
    PlaybackEnded,
    UserEcho,
)
from orchestrator.sequencing import PendingResponseBuffer, SequenceAllocator
from protocol.chat import clock_label
from session.transport import ChatReplyPayload, ChatTransport, TransportFailure
from spec import DEFAULT_USERNAME


EventListener = Callable[[ConversationEvent], None]
PlaybackListener = Callable[[PlaybackEnded], None]


def _new_session_id() -> str:
    return f"chat_{uuid4().hex[:12]}"


class _NullSink(AudioSink):
    """Sink for headless sessions: every clip 'plays' instantly."""

    async def play(self, clip: AudioClip) -> None:
        return None


class ChatSession:
    """
    One chat widget == one session.

    Ordering guarantee:
    - UserEcho: immediate, out of band
    - AssistantReply / AnalyticsResult / ErrorNotice: exactly once each,
      in the order the sends were issued, whatever order the network
      completes in
    """

    def __init__(
        self,
        *,
        transport: ChatTransport,
        sink: Optional[AudioSink] = None,
        audio_queue: Optional[AudioPlaybackQueue] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self.session_id = session_id or _new_session_id()

        self._transport = transport
        self._allocator = SequenceAllocator()
        self._buffer = PendingResponseBuffer(self._deliver, session_id=self.session_id)
        if audio_queue is None:
            audio_queue = AudioPlaybackQueue(
                sink if sink is not None else _NullSink(),
                session_id=self.session_id,
            )
        self._audio = audio_queue
        self._audio.subscribe(self._on_playback_ended)

        self._listeners: list[EventListener] = []
        self._playback_listeners: list[PlaybackListener] = []
        self._in_flight: set[asyncio.Task[int]] = set()
        self._current_affect: Affect = Affect.IDLE

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """Receive conversation events; returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def subscribe_playback(self, listener: PlaybackListener) -> Callable[[], None]:
        """Receive PlaybackEnded notifications; returns an unsubscribe function."""
        self._playback_listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._playback_listeners:
                self._playback_listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def submit(
        self,
        text: str,
        *,
        username: Optional[str] = None,
        language: Language = Language.EN,
        wallet_address: Optional[str] = None,
    ) -> asyncio.Task[int]:
        """
        Start a send without waiting for the reply.

        The sequence id is allocated and the UserEcho emitted before this
        returns; the returned task resolves to the sequence id once the
        result has been buffered (not necessarily delivered).
        """
        sequence_id = self._allocator.allocate()
        self._current_affect = Affect.IDLE

        self._emit(UserEcho(
            event_type=EventType.USER_ECHO,
            ts_ms=now_ms(),
            content=text,
            display_name=username or DEFAULT_USERNAME,
            timestamp=clock_label(),
        ))

        task = asyncio.get_running_loop().create_task(
            self._exchange(
                sequence_id,
                text=text,
                username=username,
                language=language,
                wallet_address=wallet_address,
            )
        )
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    async def send(
        self,
        text: str,
        *,
        username: Optional[str] = None,
        language: Language = Language.EN,
        wallet_address: Optional[str] = None,
    ) -> int:
        """submit() and wait until the result is buffered."""
        return await self.submit(
            text,
            username=username,
            language=language,
            wallet_address=wallet_address,
        )

    async def aclose(self) -> None:
        """Tear down: cancel in-flight sends, stop audio, close transport."""
        for task in list(self._in_flight):
            task.cancel()
        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)

        self._audio.close()
        self._buffer.clear()
        await self._transport.aclose()

    # ------------------------------------------------------------------
    # Introspection helpers
    # ------------------------------------------------------------------

    @property
    def current_affect(self) -> Affect:
        return self._current_affect

    @property
    def audio_queue(self) -> AudioPlaybackQueue:
        return self._audio

    @property
    def buffer(self) -> PendingResponseBuffer:
        return self._buffer

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _exchange(
        self,
        sequence_id: int,
        *,
        text: str,
        username: Optional[str],
        language: Language,
        wallet_address: Optional[str],
    ) -> int:
        try:
            reply = await self._transport.post_chat(
                content=text,
                username=username,
                language=language,
                wallet_address=wallet_address,
            )
        except TransportFailure as exc:
            log_event({
                "event_type": "CHAT_SEND_FAILED",
                "session_id": self.session_id,
                "sequence_id": sequence_id,
                "status_code": exc.status_code,
                "message": exc.message,
            })
            events: list[ConversationEvent] = [ErrorNotice(
                event_type=EventType.ERROR_NOTICE,
                ts_ms=now_ms(),
                message=exc.message,
            )]
        else:
            events = self._reply_events(reply)

        self._buffer.enqueue(sequence_id, events)
        return sequence_id

    @staticmethod
    def _reply_events(reply: ChatReplyPayload) -> list[ConversationEvent]:
        cz = reply.cz_message
        try:
            affect = Affect(cz.get("emotion") or Affect.IDLE.value)
        except ValueError:
            affect = Affect.IDLE

        events: list[ConversationEvent] = [AssistantReply(
            event_type=EventType.ASSISTANT_REPLY,
            ts_ms=now_ms(),
            text=str(cz.get("message", "")),
            affect=affect,
            audio_payload=cz.get("audioBase64") or None,
            message_id=cz.get("id"),
            timestamp=cz.get("timestamp"),
        )]

        if reply.analytics is not None:
            events.append(AnalyticsResult(
                event_type=EventType.ANALYTICS_RESULT,
                ts_ms=now_ms(),
                data=dict(reply.analytics),
            ))

        return events

    def _deliver(self, event: ConversationEvent) -> None:
        if isinstance(event, AssistantReply):
            self._current_affect = event.affect
            self._emit(event)
            self._audio.handle_reply(event)
            return

        self._emit(event)

    def _emit(self, event: ConversationEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                self._log_listener_failure(event, exc)

    def _on_playback_ended(self, event: PlaybackEnded) -> None:
        self._current_affect = Affect.IDLE
        for listener in list(self._playback_listeners):
            try:
                listener(event)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                self._log_listener_failure(event, exc)

    def _log_listener_failure(self, event: ConversationEvent | PlaybackEnded, exc: Exception) -> None:
        log_event({
            "event_type": "CHAT_LISTENER_FAILED",
            "session_id": self.session_id,
            "delivered_event": event.event_type.value,
            "exception": type(exc).__name__,
            "message": str(exc),
        })
