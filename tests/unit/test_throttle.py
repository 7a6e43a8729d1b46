# pylint: disable=missing-module-docstring,missing-function-docstring
import threading

import pytest

from orchestrator.throttle import (
    Accept,
    InMemoryTimestampStore,
    Reject,
    SessionThrottle,
    derive_session_key,
)


class FakeClock:
    def __init__(self, start_ms: int = 1_000_000) -> None:
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def make_throttle(cooldown_ms: int = 5_000):
    clock = FakeClock()
    store = InMemoryTimestampStore()
    return SessionThrottle(store=store, cooldown_ms=cooldown_ms, clock=clock), store, clock


# ---------------------------------------------------------------------
# Window semantics
# ---------------------------------------------------------------------

def test_first_request_is_accepted_and_recorded():
    throttle, store, clock = make_throttle()

    decision = throttle.admit("wallet-a")

    assert decision == Accept(at_ms=clock.now)
    assert store.get("wallet-a") == clock.now


def test_request_inside_window_reports_whole_seconds_remaining():
    throttle, _, clock = make_throttle()
    throttle.admit("k")

    clock.advance(1)
    assert throttle.admit("k") == Reject(remaining_seconds=5)


def test_one_ms_before_window_end_still_rejects_with_one_second():
    throttle, store, clock = make_throttle()
    throttle.admit("k")
    first = store.get("k")

    clock.advance(4_999)
    decision = throttle.admit("k")

    assert decision == Reject(remaining_seconds=1)
    assert store.get("k") == first


def test_request_exactly_at_window_end_is_accepted():
    throttle, store, clock = make_throttle()
    throttle.admit("k")

    clock.advance(5_000)
    decision = throttle.admit("k")

    assert isinstance(decision, Accept)
    assert store.get("k") == clock.now


def test_rejection_does_not_extend_the_window():
    throttle, _, clock = make_throttle()
    throttle.admit("k")

    clock.advance(2_000)
    assert throttle.admit("k") == Reject(remaining_seconds=3)

    clock.advance(1_000)
    assert throttle.admit("k") == Reject(remaining_seconds=2)

    clock.advance(2_000)
    assert isinstance(throttle.admit("k"), Accept)


def test_sessions_are_independent():
    throttle, _, clock = make_throttle()
    throttle.admit("a")

    clock.advance(100)

    assert isinstance(throttle.admit("b"), Accept)
    assert isinstance(throttle.admit("a"), Reject)


def test_explicit_now_overrides_clock():
    throttle, _, _ = make_throttle()

    assert throttle.admit("k", now_ms=10_000) == Accept(at_ms=10_000)
    assert throttle.admit("k", now_ms=12_500) == Reject(remaining_seconds=3)


def test_cooldown_must_be_positive():
    with pytest.raises(ValueError):
        SessionThrottle(cooldown_ms=0)


def test_concurrent_admits_for_same_key_accept_once():
    throttle, _, _ = make_throttle()
    decisions: list[object] = []
    barrier = threading.Barrier(8)

    def worker() -> None:
        barrier.wait()
        decisions.append(throttle.admit("same"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sum(isinstance(d, Accept) for d in decisions) == 1
    assert sum(isinstance(d, Reject) for d in decisions) == 7


# ---------------------------------------------------------------------
# Session key
# ---------------------------------------------------------------------

def test_wallet_address_takes_precedence():
    key = derive_session_key(
        wallet_address="0xabc",
        forwarded_for="1.2.3.4",
        peer_host="10.0.0.1",
    )
    assert key == "0xabc"


def test_first_forwarded_hop_is_used():
    key = derive_session_key(forwarded_for=" 1.2.3.4 , 5.6.7.8", peer_host="10.0.0.1")
    assert key == "1.2.3.4"


def test_peer_host_then_fallback():
    assert derive_session_key(peer_host="10.0.0.1") == "10.0.0.1"
    assert derive_session_key() == "unknown"
    assert derive_session_key(wallet_address="", forwarded_for="") == "unknown"
