"""
Per-session request throttle.

Responsibilities:
- Derive a session key for an incoming chat request
- Admit or reject a request against a fixed cooldown window
- Persist last-accepted timestamps through an injected store

Rules:
- A rejected attempt never moves the window
- An accepted attempt records `now` BEFORE the reply is generated,
  so a rapid duplicate send cannot be admitted while the first is
  still in flight

Limitations:
- InMemoryTimestampStore is process-local. Each server instance
  enforces its own window; this is best-effort backpressure, not a
  cross-instance guarantee. Swap in a shared store to change that.
- Entries never expire; they are overwritten on the next acceptance.
"""

from __future__ import annotations

import math
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional, Union

from observability.logger import log_event
from spec import CHAT_COOLDOWN_MS, SESSION_KEY_FALLBACK


ClockFn = Callable[[], int]


def monotonic_ms() -> int:
    """Process-local monotonic clock in milliseconds."""
    return time.monotonic_ns() // 1_000_000


# =============================================================================
# Session Key
# =============================================================================

def derive_session_key(
    *,
    wallet_address: Optional[str] = None,
    forwarded_for: Optional[str] = None,
    peer_host: Optional[str] = None,
) -> str:
    """
    Pick the identity that scopes the cooldown window.

    Precedence: wallet address, then the first X-Forwarded-For hop,
    then the transport peer address, then a fixed fallback token.
    """
    if wallet_address:
        return wallet_address

    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop

    if peer_host:
        return peer_host

    return SESSION_KEY_FALLBACK


# =============================================================================
# Timestamp Store
# =============================================================================

class TimestampStore(ABC):
    """
    Key-value storage for last-accepted timestamps.

    Implementations may be process-local or shared; the throttle logic
    is identical either way.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[int]:
        """Return the stored timestamp in ms, or None if unseen."""
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, timestamp_ms: int) -> None:
        """Record timestamp_ms for key, overwriting any previous value."""
        raise NotImplementedError


class InMemoryTimestampStore(TimestampStore):
    """Dict-backed store, lives for the lifetime of the process."""

    def __init__(self) -> None:
        self._data: dict[str, int] = {}

    def get(self, key: str) -> Optional[int]:
        return self._data.get(key)

    def set(self, key: str, timestamp_ms: int) -> None:
        self._data[key] = timestamp_ms

    def __len__(self) -> int:
        return len(self._data)


# =============================================================================
# Decisions
# =============================================================================

@dataclass(frozen=True)
class Accept:
    """Request admitted; the window restarts at `at_ms`."""
    at_ms: int


@dataclass(frozen=True)
class Reject:
    """Request refused; caller must wait `remaining_seconds` (> 0)."""
    remaining_seconds: int


ThrottleDecision = Union[Accept, Reject]


# =============================================================================
# Throttle
# =============================================================================

class SessionThrottle:
    """
    Cooldown gate keyed by session.

    The read-modify-write in admit() is serialized by a lock so two
    requests for the same key cannot both pass.
    """

    def __init__(
        self,
        *,
        store: Optional[TimestampStore] = None,
        cooldown_ms: int = CHAT_COOLDOWN_MS,
        clock: ClockFn = monotonic_ms,
    ) -> None:
        if cooldown_ms <= 0:
            raise ValueError("cooldown_ms must be > 0")

        self._store = store if store is not None else InMemoryTimestampStore()
        self._cooldown_ms = cooldown_ms
        self._clock = clock
        self._lock = threading.Lock()

    @property
    def cooldown_ms(self) -> int:
        return self._cooldown_ms

    def admit(self, session_key: str, now_ms: Optional[int] = None) -> ThrottleDecision:
        """
        Admit or reject one request for session_key.

        elapsed = now - last_accepted (missing key: infinite)
        elapsed < cooldown  -> Reject(ceil((cooldown - elapsed) / 1000)),
                               timestamp untouched
        otherwise           -> Accept, timestamp := now
        """
        now = self._clock() if now_ms is None else now_ms

        with self._lock:
            last = self._store.get(session_key)
            elapsed = math.inf if last is None else now - last

            if elapsed < self._cooldown_ms:
                remaining = math.ceil((self._cooldown_ms - elapsed) / 1000)
                log_event({
                    "event_type": "THROTTLE_REJECTED",
                    "session_key": session_key,
                    "elapsed_ms": elapsed,
                    "remaining_s": remaining,
                })
                return Reject(remaining_seconds=remaining)

            self._store.set(session_key, now)

        log_event({
            "event_type": "THROTTLE_ACCEPTED",
            "session_key": session_key,
        })
        return Accept(at_ms=now)
