from __future__ import annotations

"""Timed visual feedback per fretboard position.

Each position holds at most one live FeedbackState and one expiry timer.
Showing feedback at an occupied position cancels the old timer first.
"""

import sys
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..app.events import EventBus
from ..app.explain import trace as xtrace
from ..config.settings import FeedbackConfig, merged
from ..theory.note import Note
from ..util.scheduler import CooperativeScheduler, Scheduler, TimerHandle
from .models import FeedbackState, FeedbackType


@dataclass(frozen=True)
class FeedbackEvent:
    type: str
    position_id: Optional[str]
    feedback_type: Optional[FeedbackType] = None
    timestamp: float = 0.0


class FeedbackRegistry:
    def __init__(
        self,
        scheduler: Optional[Scheduler] = None,
        config: Optional[FeedbackConfig] = None,
        on_complete: Optional[Callable[[FeedbackType, str], None]] = None,
    ) -> None:
        self._scheduler = scheduler or CooperativeScheduler()
        self._config = config or FeedbackConfig()
        self._on_complete = on_complete
        self._active: Dict[str, FeedbackState] = {}
        self._timers: Dict[str, TimerHandle] = {}
        self._bus: EventBus[FeedbackEvent] = EventBus("feedback")

    @property
    def config(self) -> FeedbackConfig:
        return self._config

    def update_config(self, **changes: Any) -> None:
        self._config = merged(self._config, **changes)

    def set_on_complete(self, callback: Optional[Callable[[FeedbackType, str], None]]) -> None:
        self._on_complete = callback

    # ---- showing ----

    def show_correct(self, note: Note) -> FeedbackState:
        return self._start(note.position_id, "correct", self._config.correct_duration_ms)

    def show_incorrect(self, note: Note) -> FeedbackState:
        return self._start(note.position_id, "incorrect", self._config.incorrect_duration_ms)

    def show_hint(self, note: Note) -> FeedbackState:
        pulses = self._config.hint_pulse_count
        return self._start(note.position_id, "hint", self._config.hint_pulse_duration_ms * pulses, pulses)

    def show(self, note: Note, feedback_type: FeedbackType) -> Optional[FeedbackState]:
        if feedback_type == "correct":
            return self.show_correct(note)
        if feedback_type == "incorrect":
            return self.show_incorrect(note)
        if feedback_type == "hint":
            return self.show_hint(note)
        return None

    def _start(self, position_id: str, ftype: FeedbackType, duration: float, pulses: Optional[int] = None) -> FeedbackState:
        self._scheduler.cancel(self._timers.pop(position_id, None))
        now = self._scheduler.now()
        state = FeedbackState(position_id=position_id, type=ftype, start_time=now, duration=duration, pulse_count=pulses)
        self._active[position_id] = state
        self._timers[position_id] = self._scheduler.schedule(duration, lambda: self._expire(position_id))
        self._bus.emit("feedback_start", FeedbackEvent("feedback_start", position_id, ftype, now))
        xtrace("feedback_start", {"position": position_id, "type": ftype, "duration_ms": duration})
        return state

    def _expire(self, position_id: str) -> None:
        self._timers.pop(position_id, None)
        state = self._active.pop(position_id, None)
        if state is None:
            return
        self._bus.emit("feedback_complete", FeedbackEvent("feedback_complete", position_id, state.type, self._scheduler.now()))
        if self._on_complete is not None:
            try:
                self._on_complete(state.type, position_id)
            except Exception as exc:
                print(f"[WARN] feedback: on_complete for '{position_id}' failed: {exc!r}", file=sys.stderr)
                xtrace("listener_error", {"bus": "feedback", "event": "on_complete", "error": repr(exc)})

    # ---- clearing ----

    def clear(self, position_id: str) -> bool:
        self._scheduler.cancel(self._timers.pop(position_id, None))
        state = self._active.pop(position_id, None)
        if state is None:
            return False
        self._bus.emit("feedback_clear", FeedbackEvent("feedback_clear", position_id, state.type, self._scheduler.now()))
        return True

    def clear_all(self) -> None:
        for handle in self._timers.values():
            self._scheduler.cancel(handle)
        self._timers.clear()
        cleared = list(self._active.items())
        self._active.clear()
        now = self._scheduler.now()
        for position_id, state in cleared:
            self._bus.emit("feedback_clear", FeedbackEvent("feedback_clear", position_id, state.type, now))

    def dispose(self) -> None:
        """Drop listeners and the completion callback, then clear silently."""
        self._bus.clear()
        self._on_complete = None
        self.clear_all()

    # ---- queries ----

    def get(self, position_id: str) -> Optional[FeedbackState]:
        return self._active.get(position_id)

    def get_for_note(self, note: Note) -> Optional[FeedbackState]:
        return self._active.get(note.position_id)

    def type_at(self, position_id: str) -> FeedbackType:
        state = self._active.get(position_id)
        return state.type if state else "none"

    def has_feedback_at(self, position_id: str) -> bool:
        return position_id in self._active

    @property
    def active(self) -> List[FeedbackState]:
        return list(self._active.values())

    @property
    def active_positions(self) -> List[str]:
        return list(self._active.keys())

    @property
    def active_count(self) -> int:
        return len(self._active)

    @property
    def has_feedback(self) -> bool:
        return bool(self._active)

    def remaining_duration(self, position_id: str) -> float:
        state = self._active.get(position_id)
        if state is None:
            return 0.0
        return max(0.0, state.start_time + state.duration - self._scheduler.now())

    # ---- events ----

    def on(self, event: str, handler: Callable[[FeedbackEvent], None]) -> Callable[[], None]:
        return self._bus.subscribe(event, handler)

    def off(self, event: str, handler: Callable[[FeedbackEvent], None]) -> None:
        self._bus.unsubscribe(event, handler)

    def remove_all_listeners(self, event: Optional[str] = None) -> None:
        self._bus.clear(event)
