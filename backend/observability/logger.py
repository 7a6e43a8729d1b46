"""
Structured event logger.

- Write one record per line to stdout
- JSONL by default; key=value text when JSON logs are disabled
- No buffering, no batching
- No side effects beyond logging
"""

from __future__ import annotations

import json
import sys
import time
from typing import Any, Mapping, Callable


# ------------------------------------------------------------------
# Explicit output sink (patchable in tests)
# ------------------------------------------------------------------

def _stdout_print(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()

_print: Callable[[str], None] = _stdout_print

_json_lines: bool = True


def configure(*, json_lines: bool) -> None:
    """Select JSONL (default) or human-readable key=value output."""
    global _json_lines  # pylint: disable=global-statement
    _json_lines = json_lines


def now_ms() -> int:
    """Wall-clock milliseconds for log correlation."""
    return time.time_ns() // 1_000_000


def log_event(event: Mapping[str, Any]) -> None:
    """
    Write a single structured event to stdout.

    The caller supplies a fully-formed event dict with at least
    "event_type". A missing "ts_ms" is filled in with wall-clock time.

    Never raises.
    """
    record: dict[str, Any] = dict(event)
    record.setdefault("ts_ms", now_ms())

    if not _json_lines:
        _print(_format_text(record))
        return

    try:
        line = json.dumps(record, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        # Last-resort fallback: logging must never crash a request
        fallback: dict[str, Any] = {
            "ts_ms": record.get("ts_ms"),
            "event_type": "LOGGER_SERIALIZATION_ERROR",
            "error": str(e),
            "original_event_repr": repr(record),
        }
        line = json.dumps(fallback, ensure_ascii=False, separators=(",", ":"))

    _print(line)


def _format_text(record: Mapping[str, Any]) -> str:
    head = str(record.get("event_type", "EVENT"))
    rest = " ".join(
        f"{key}={value!r}"
        for key, value in record.items()
        if key != "event_type"
    )
    return f"{head} {rest}" if rest else head
