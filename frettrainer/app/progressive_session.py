from __future__ import annotations

"""Open-ended progressive practice driven by the mastery tracker.

There is no question total: the tracker picks each target position, answer
times are measured on the scheduler clock, and correct answers move on to
the next note after a short delay. Positions that are still locked are
rejected without touching the ledger.
"""

import sys
from dataclasses import dataclass
from typing import Callable, Literal, Optional

from ..quiz.feedback import FeedbackRegistry
from ..quiz.progressive import STRING_NAMES, ProgressiveMasteryTracker
from ..theory.fretboard import Fretboard
from ..theory.note import Note
from ..util.scheduler import CooperativeScheduler, Scheduler, TimerHandle
from .events import EventBus
from .explain import trace as xtrace


MIN_NEXT_NOTE_DELAY_MS = 800

ProgressiveOutcome = Literal["correct", "incorrect", "outside", "invalid"]


@dataclass(frozen=True)
class ProgressiveQuestion:
    string: int
    fret: int
    target_note: Note
    question_text: str
    started_at: float


@dataclass(frozen=True)
class ProgressiveAnswer:
    result: ProgressiveOutcome
    message: str
    answer_time: Optional[float] = None
    fret_unlocked: bool = False
    string_unlocked: bool = False


@dataclass(frozen=True)
class ProgressiveEvent:
    type: str
    question: Optional[ProgressiveQuestion] = None
    answer: Optional[ProgressiveAnswer] = None
    string: Optional[int] = None
    unlocked_frets: Optional[int] = None


class ProgressiveSession:
    def __init__(
        self,
        tracker: Optional[ProgressiveMasteryTracker] = None,
        fretboard: Optional[Fretboard] = None,
        scheduler: Optional[Scheduler] = None,
        feedback: Optional[FeedbackRegistry] = None,
    ) -> None:
        self.tracker = tracker or ProgressiveMasteryTracker()
        self.fretboard = fretboard or Fretboard()
        self._scheduler = scheduler or CooperativeScheduler()
        self.feedback = feedback or FeedbackRegistry(self._scheduler)
        self._question: Optional[ProgressiveQuestion] = None
        self._timer: Optional[TimerHandle] = None
        self._active = False
        self.correct = 0
        self.total = 0
        self._bus: EventBus[ProgressiveEvent] = EventBus("progressive")

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def current_question(self) -> Optional[ProgressiveQuestion]:
        return self._question

    @property
    def next_note_pending(self) -> bool:
        return self._timer is not None and self._timer.active

    @property
    def session_accuracy(self) -> float:
        return (self.correct / self.total) * 100 if self.total > 0 else 0.0

    # ---- lifecycle ----

    def start(self) -> Optional[ProgressiveQuestion]:
        self._active = True
        self.correct = 0
        self.total = 0
        xtrace("progressive_started", {"string": self.tracker.current_string, "unlocked": self.tracker.unlocked_frets})
        return self.next_question()

    def pause(self) -> None:
        self._active = False
        self._cancel_timer()
        self._question = None
        self.feedback.clear_all()

    def resume(self) -> Optional[ProgressiveQuestion]:
        self._active = True
        return self.next_question()

    def reset(self) -> None:
        """Zero the session tallies. The tracker ledger is left alone."""
        self._cancel_timer()
        self.feedback.clear_all()
        self._question = None
        self._active = False
        self.correct = 0
        self.total = 0

    def next_question(self) -> Optional[ProgressiveQuestion]:
        if not self._active:
            return None
        self._cancel_timer()
        string, fret = self.tracker.generate_question_target()
        note = self.fretboard.get_note_at(string, fret)
        if note is None:
            print(f"[WARN] progressive: no note at string {string} fret {fret}", file=sys.stderr)
            self._question = None
            return None
        text = f"Find {note.pitch_class} on the {STRING_NAMES[string]} string"
        self._question = ProgressiveQuestion(string, fret, note, text, self._scheduler.now())
        self._bus.emit("question_ready", ProgressiveEvent("question_ready", question=self._question))
        xtrace("progressive_question", {"target": note.position_id})
        return self._question

    # ---- answering ----

    def submit_answer(self, note: Note) -> ProgressiveAnswer:
        question = self._question
        if not self._active or question is None or self.next_note_pending:
            return ProgressiveAnswer("invalid", "No question is waiting for an answer.")
        if not self.tracker.is_string_unlocked(note.string):
            return ProgressiveAnswer("outside", f"The {STRING_NAMES.get(note.string, str(note.string))} string is locked!")
        if not self.tracker.is_position_unlocked(note.string, note.fret):
            return ProgressiveAnswer("outside", "This note is locked!")

        answer_time = (self._scheduler.now() - question.started_at) / 1000.0
        ok = note.string == question.string and note.fret == question.fret
        frets_before = self.tracker.unlocked_frets_for_string(question.string)
        index_before = self.tracker.current_string_index
        self.tracker.record_attempt(question.string, question.fret, ok, answer_time)
        fret_unlocked = self.tracker.unlocked_frets_for_string(question.string) > frets_before
        string_unlocked = self.tracker.current_string_index > index_before
        self.total += 1

        if ok:
            self.correct += 1
            self.feedback.show_correct(note)
            if answer_time > self.tracker.config.max_answer_time_to_count:
                msg = "Correct! (too slow - time not counted)"
            else:
                msg = f"Correct! in {answer_time:.1f}s"
            delay = max(self.tracker.config.next_note_delay_ms, MIN_NEXT_NOTE_DELAY_MS)
            self._timer = self._scheduler.schedule(delay, self._advance)
        else:
            self.feedback.show_incorrect(note)
            msg = f"Wrong! You clicked {note.pitch_class}"

        answer = ProgressiveAnswer("correct" if ok else "incorrect", msg, answer_time, fret_unlocked, string_unlocked)
        self._bus.emit("answer_recorded", ProgressiveEvent("answer_recorded", question=question, answer=answer))
        xtrace("progressive_answer", {"target": question.target_note.position_id, "correct": ok, "time_s": round(answer_time, 3)})
        if fret_unlocked:
            self._bus.emit(
                "fret_unlocked",
                ProgressiveEvent(
                    "fret_unlocked",
                    string=question.string,
                    unlocked_frets=self.tracker.unlocked_frets_for_string(question.string),
                ),
            )
        if string_unlocked:
            current = self.tracker.current_string
            self._bus.emit(
                "string_unlocked",
                ProgressiveEvent("string_unlocked", string=current, unlocked_frets=self.tracker.unlocked_frets_for_string(current)),
            )
            xtrace("string_unlocked", {"string": current})
        return answer

    def _advance(self) -> None:
        self._timer = None
        self.feedback.clear_all()
        self.next_question()

    def _cancel_timer(self) -> None:
        self._scheduler.cancel(self._timer)
        self._timer = None

    # ---- events ----

    def on(self, event: str, handler: Callable[[ProgressiveEvent], None]) -> Callable[[], None]:
        return self._bus.subscribe(event, handler)

    def off(self, event: str, handler: Callable[[ProgressiveEvent], None]) -> None:
        self._bus.unsubscribe(event, handler)

    def dispose(self) -> None:
        self.reset()
        self.feedback.dispose()
        self._bus.clear()
