from __future__ import annotations

"""Explain Mode: one-line milestone traces for quiz and progress events.

Turned on by `--explain`. Each line reads `[EXPLAIN] <event> :: <json>`;
payloads are small dicts of positions, counts and timings.
"""

import json
import sys
from typing import Any, Dict, Optional, TextIO

_ENABLED = False
_STREAM: Optional[TextIO] = None


def enable(flag: bool = True, stream: Optional[TextIO] = None) -> None:
    """Switch tracing on or off. `stream` defaults to stdout at write time."""
    global _ENABLED, _STREAM
    _ENABLED = bool(flag)
    _STREAM = stream


def enabled() -> bool:
    return _ENABLED


def trace(event: str, payload: Optional[Dict[str, Any]] = None) -> None:
    if not _ENABLED:
        return
    out = _STREAM or sys.stdout
    try:
        body = json.dumps(payload or {}, separators=(",", ":"), sort_keys=True, default=str)
    except (TypeError, ValueError):
        print(f"[EXPLAIN] {event}", file=out)
        return
    print(f"[EXPLAIN] {event} :: {body}", file=out)
