# backend/audio/playback.py
"""
Serial audio playback queue (client side).

Requirements:
- At most one clip plays at any instant
- Clips play in push order (FIFO)
- A clip that fails to play never blocks later clips
- Every finished or failed clip produces exactly one PlaybackEnded
- A reply without audio still produces one PlaybackEnded after a
  fixed delay, unless a real one arrives first

Runs on the event loop thread; push() may be called while a clip is
playing and never interrupts it.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections import deque
from typing import Callable, Deque, Optional

from audio.clips import AudioClip
from observability.logger import log_event, now_ms
from orchestrator.events import AssistantReply, EventType, PlaybackEnded
from spec import NO_AUDIO_FALLBACK_MS, ms_to_seconds


PlaybackListener = Callable[[PlaybackEnded], None]


class AudioSink(ABC):
    """
    Output device abstraction.

    play() returns when the clip has finished and raises if it could
    not be played. Concrete devices (browser element, sound card) live
    with the UI.
    """

    @abstractmethod
    async def play(self, clip: AudioClip) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        """Stop the current clip immediately. Default: nothing to stop."""


class AudioPlaybackQueue:
    """
    FIFO of AudioClip objects with a single playback slot.

    State:
    - queue: clips waiting to play
    - playing: True while a clip occupies the slot
    """

    def __init__(
        self,
        sink: AudioSink,
        *,
        fallback_ms: int = NO_AUDIO_FALLBACK_MS,
        session_id: str | None = None,
    ) -> None:
        self._sink = sink
        self._fallback_s = ms_to_seconds(fallback_ms)
        self._session_id = session_id

        self._queue: Deque[AudioClip] = deque()
        self._playing: bool = False
        self._current: Optional[asyncio.Task[None]] = None
        self._fallback: Optional[asyncio.TimerHandle] = None
        self._listeners: list[PlaybackListener] = []

    # -------------------------
    # Subscriptions
    # -------------------------

    def subscribe(self, listener: PlaybackListener) -> Callable[[], None]:
        """Register a PlaybackEnded listener; returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # -------------------------
    # Core queue operations
    # -------------------------

    def push(self, clip: AudioClip) -> None:
        """Append clip, then start playback if the slot is free."""
        self._queue.append(clip)
        self.play_next()

    def play_next(self) -> None:
        """
        Start the head clip.

        No-op while a clip is playing or when the queue is empty.
        Must be called from the event loop thread.
        """
        if self._playing or not self._queue:
            return

        clip = self._queue.popleft()
        self._playing = True
        self._current = asyncio.get_running_loop().create_task(self._play(clip))

    def handle_reply(self, reply: AssistantReply) -> None:
        """
        Route a delivered reply: queue its audio, or arm the no-audio
        fallback so "speaking" state still returns to idle.
        """
        self.cancel_fallback()

        if reply.audio_payload:
            self.push(AudioClip.from_payload(reply.audio_payload))
        else:
            self.arm_fallback()

    # -------------------------
    # No-audio fallback
    # -------------------------

    def arm_fallback(self) -> None:
        """(Re)start the timer that emits a fallback PlaybackEnded."""
        self.cancel_fallback()
        self._fallback = asyncio.get_running_loop().call_later(
            self._fallback_s,
            self._fire_fallback,
        )

    def cancel_fallback(self) -> None:
        if self._fallback is not None:
            self._fallback.cancel()
            self._fallback = None

    # -------------------------
    # Teardown
    # -------------------------

    def close(self) -> None:
        """
        Stop current playback, drop queued clips, cancel the fallback.

        No PlaybackEnded is emitted for clips dropped here.
        """
        self.cancel_fallback()
        self._queue.clear()

        if self._current is not None:
            self._current.cancel()
            self._current = None
            self._sink.stop()

        self._playing = False

    # -------------------------
    # Introspection helpers
    # -------------------------

    @property
    def playing(self) -> bool:
        return self._playing

    @property
    def fallback_armed(self) -> bool:
        return self._fallback is not None

    def __len__(self) -> int:
        return len(self._queue)

    def snapshot(self) -> dict[str, int | bool]:
        """
        Lightweight snapshot for logging.
        """
        return {
            "queued": len(self._queue),
            "playing": self._playing,
            "fallback_armed": self.fallback_armed,
        }

    # -------------------------
    # Internal
    # -------------------------

    async def _play(self, clip: AudioClip) -> None:
        failed = False
        try:
            await self._sink.play(clip)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # pylint: disable=broad-exception-caught
            failed = True
            log_event({
                "event_type": "PLAYBACK_FAILED",
                "session_id": self._session_id,
                "media_type": clip.media_type,
                "queue": self.snapshot(),
                "exception": type(exc).__name__,
                "message": str(exc),
            })

        self._current = None
        self._on_clip_finished(failed=failed)

    def _on_clip_finished(self, *, failed: bool) -> None:
        # A real end supersedes any pending fallback notification
        self.cancel_fallback()
        self._emit(PlaybackEnded(
            event_type=EventType.PLAYBACK_ENDED,
            ts_ms=now_ms(),
            failed=failed,
        ))
        self._playing = False
        self.play_next()

    def _fire_fallback(self) -> None:
        self._fallback = None
        self._emit(PlaybackEnded(
            event_type=EventType.PLAYBACK_ENDED,
            ts_ms=now_ms(),
            fallback=True,
        ))

    def _emit(self, event: PlaybackEnded) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                # A broken listener must not wedge the playback slot
                log_event({
                    "event_type": "PLAYBACK_LISTENER_FAILED",
                    "session_id": self._session_id,
                    "exception": type(exc).__name__,
                    "message": str(exc),
                })
