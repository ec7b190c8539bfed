from __future__ import annotations

"""Tiny typed pub/sub event bus.

Every emitting component owns one bus. Listeners are observers: a failing
listener is reported and skipped, the rest still receive the event.
"""

import sys
from typing import Callable, Dict, Generic, List, Optional, TypeVar

from .explain import trace as xtrace


E = TypeVar("E")


class EventBus(Generic[E]):
    def __init__(self, name: str = "events") -> None:
        self.name = name
        self._subs: Dict[str, List[Callable[[E], None]]] = {}

    def subscribe(self, event: str, handler: Callable[[E], None]) -> Callable[[], None]:
        """Register a handler. Returns a function that unsubscribes it."""
        handlers = self._subs.setdefault(event, [])
        if handler not in handlers:
            handlers.append(handler)

        def _unsubscribe() -> None:
            self.unsubscribe(event, handler)

        return _unsubscribe

    def unsubscribe(self, event: str, handler: Callable[[E], None]) -> None:
        handlers = self._subs.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def clear(self, event: Optional[str] = None) -> None:
        if event is None:
            self._subs.clear()
        else:
            self._subs.pop(event, None)

    def listener_count(self, event: Optional[str] = None) -> int:
        if event is None:
            return sum(len(h) for h in self._subs.values())
        return len(self._subs.get(event, []))

    def emit(self, event: str, payload: E) -> None:
        # snapshot so handlers may unsubscribe while being notified
        for h in list(self._subs.get(event, [])):
            try:
                h(payload)
            except Exception as exc:
                print(f"[WARN] {self.name}: listener for '{event}' failed: {exc!r}", file=sys.stderr)
                xtrace("listener_error", {"bus": self.name, "event": event, "error": repr(exc)})
