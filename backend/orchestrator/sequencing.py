"""
Send sequencing and ordered response delivery.

Responsibilities:
- Assign a monotonic sequence id to every user-initiated send
- Buffer responses that complete out of order
- Deliver buffered events to the consumer in send order

Invariants:
- Sequence ids start at 0, strictly increase, never repeat
- For any delivered id k, every id < k was delivered exactly once,
  in increasing order, before k
- A response that arrives late is still delivered, never dropped

Known gap:
- If the response for id k never arrives, every id > k stays buffered
  (head-of-line blocking). There is no timeout on the wait.

Non-responsibilities:
- No network I/O
- No UserEcho handling (echoes bypass ordering)
- No timers
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from observability.logger import log_event
from orchestrator.events import ConversationEvent
from spec import SEQUENCE_ID_START


DeliverFn = Callable[[ConversationEvent], None]


class SequenceAllocator:
    """
    Monotonic sequence id source for one client instance.

    Not shared across threads; one logical caller.
    """

    def __init__(self, start: int = SEQUENCE_ID_START) -> None:
        if start < 0:
            raise ValueError("start must be >= 0")
        self._next = start

    def allocate(self) -> int:
        """Return the next sequence id."""
        sequence_id = self._next
        self._next += 1
        return sequence_id

    @property
    def issued(self) -> int:
        """Number of ids handed out so far."""
        return self._next - SEQUENCE_ID_START


@dataclass(frozen=True)
class PendingEntry:
    """Events for one send, held until every earlier send is delivered."""
    sequence_id: int
    ordered_events: tuple[ConversationEvent, ...]


class PendingResponseBuffer:
    """
    Reorders per-send results back into send order.

    Drain rules:
    - While an entry exists for last_delivered + 1:
        remove it, advance last_delivered, then deliver its
        events in stored order
    - Stop at the first gap

    Consumer errors:
    - An exception from deliver() is logged and skipped; it never
      drops the remaining events of the entry or stalls later ids.

    Re-entrancy:
    - enqueue() called from inside a consumer callback only stores the
      entry; the drain already in progress picks it up.
    """

    def __init__(self, deliver: DeliverFn, *, session_id: str | None = None) -> None:
        self._deliver = deliver
        self._session_id = session_id

        self._last_delivered: int = SEQUENCE_ID_START - 1
        self._pending: dict[int, PendingEntry] = {}
        self._draining: bool = False

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def enqueue(self, sequence_id: int, events: Sequence[ConversationEvent]) -> None:
        """
        Store the events for sequence_id, then attempt to drain.

        Duplicate or already-delivered ids are ignored (first result wins).
        """
        if sequence_id <= self._last_delivered or sequence_id in self._pending:
            log_event({
                "event_type": "RESPONSE_DUPLICATE_IGNORED",
                "session_id": self._session_id,
                "sequence_id": sequence_id,
                "last_delivered": self._last_delivered,
            })
            return

        self._pending[sequence_id] = PendingEntry(
            sequence_id=sequence_id,
            ordered_events=tuple(events),
        )

        if sequence_id != self._last_delivered + 1:
            log_event({
                "event_type": "RESPONSE_BUFFERED",
                "session_id": self._session_id,
                "sequence_id": sequence_id,
                "waiting_for": self._last_delivered + 1,
            })

        self.drain()

    def drain(self) -> int:
        """
        Deliver every contiguous ready entry.

        Returns the number of entries delivered by this call
        (0 when invoked re-entrantly).
        """
        if self._draining:
            return 0

        delivered = 0
        self._draining = True
        try:
            while True:
                next_id = self._last_delivered + 1
                entry = self._pending.pop(next_id, None)
                if entry is None:
                    break

                # Advanced before delivery; a re-entrant enqueue of this id is a duplicate
                self._last_delivered = next_id
                delivered += 1

                for event in entry.ordered_events:
                    try:
                        self._deliver(event)
                    except Exception as exc:  # pylint: disable=broad-exception-caught
                        log_event({
                            "event_type": "RESPONSE_CONSUMER_FAILED",
                            "session_id": self._session_id,
                            "sequence_id": next_id,
                            "delivered_event": event.event_type.value,
                            "exception": type(exc).__name__,
                            "message": str(exc),
                        })

                log_event({
                    "event_type": "RESPONSE_DELIVERED",
                    "session_id": self._session_id,
                    "sequence_id": next_id,
                    "events": len(entry.ordered_events),
                })
        finally:
            self._draining = False

        return delivered

    # ------------------------------------------------------------------
    # Introspection helpers
    # ------------------------------------------------------------------

    @property
    def last_delivered(self) -> int:
        return self._last_delivered

    def pending_ids(self) -> list[int]:
        """Buffered ids in increasing order."""
        return sorted(self._pending)

    def blocked_on(self) -> int | None:
        """
        The id holding back delivery, or None when nothing is buffered.
        """
        if not self._pending:
            return None
        return self._last_delivered + 1

    def clear(self) -> None:
        """Drop all buffered entries (teardown only)."""
        self._pending.clear()

    def __len__(self) -> int:
        return len(self._pending)
