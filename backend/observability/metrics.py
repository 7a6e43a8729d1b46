"""
Timing helpers for provider calls.

Responsibilities:
- Measure durations using monotonic time (immune to clock changes)
- Emit metrics as structured events via observability.logger
- Never aggregate: one metric = one log event

Design notes:
- Durations use monotonic time for correctness
- Event timestamps (ts_ms) use wall-clock time for human readability
- Prefer the `timed()` context manager to avoid leaked timers
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator

from observability.logger import log_event, now_ms


@contextmanager
def timed(name: str, **details: Any) -> Iterator[dict[str, Any]]:
    """
    Measure the enclosed block and emit exactly one METRIC_TIMER event.

    The yielded dict may be filled in by the block; its contents are
    merged into the event details (e.g. {"ok": False}).

    Exceptions inside the block propagate; timing is still emitted.

    Usage:
        with timed("llm_completion", provider="openai") as extra:
            text = await adapter.complete(...)
            extra["chars"] = len(text)
    """
    extra: dict[str, Any] = {}
    start_ns = time.monotonic_ns()
    try:
        yield extra
    except BaseException:
        extra.setdefault("ok", False)
        raise
    finally:
        duration_ms = (time.monotonic_ns() - start_ns) // 1_000_000
        extra.setdefault("ok", True)
        log_event({
            "ts_ms": now_ms(),
            "event_type": "METRIC_TIMER",
            "metric": name,
            "value_ms": duration_ms,
            "details": {**details, **extra},
        })
