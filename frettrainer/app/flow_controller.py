from __future__ import annotations

"""Quiz flow controller: the single entry point for quiz hosts.

Composes the question generator, answer validator, quiz state machine and
feedback registry, and owns the auto-advance timer and pause/resume.
All timing goes through a cooperative scheduler; nothing here blocks.
"""

import random
import sys
from dataclasses import dataclass
from typing import Any, Callable, Literal, Optional

from ..config.settings import AttemptConfig, FlowConfig, merged
from ..quiz.feedback import FeedbackRegistry
from ..quiz.generator import NoteQuestionGenerator
from ..quiz.models import FeedbackState, QuestionStats, QuizQuestion, QuizResult, QuizStateName, ValidationResult
from ..quiz.state import NoteQuizState
from ..quiz.validator import AnswerValidator
from ..theory.fretboard import Fretboard
from ..theory.note import Note
from ..util.scheduler import CooperativeScheduler, Scheduler, TimerHandle
from ..zones.zone import HighlightZone
from .events import EventBus
from .explain import trace as xtrace


PauseState = Literal["running", "paused", "auto-advance-pending"]

FLOW_EVENTS = (
    "quiz_started",
    "question_ready",
    "answer_processed",
    "auto_advance_scheduled",
    "auto_advance_cancelled",
    "paused",
    "resumed",
    "quiz_completed",
    "quiz_reset",
)


@dataclass(frozen=True)
class ScoreData:
    correct: int
    total: int
    hints_used: int
    total_attempts: int
    display: str
    accuracy: int


@dataclass(frozen=True)
class ProgressData:
    current_question: int
    total_questions: int
    display: str
    percentage: int


@dataclass(frozen=True)
class FlowEvent:
    type: str
    timestamp: float
    quiz_state: QuizStateName
    pause_state: PauseState
    question: Optional[QuizQuestion] = None
    score: Optional[ScoreData] = None
    progress: Optional[ProgressData] = None
    result: Optional[QuizResult] = None
    auto_advance_remaining: Optional[float] = None


class QuizFlowController:
    def __init__(
        self,
        config: Optional[FlowConfig] = None,
        fretboard: Optional[Fretboard] = None,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._config = config or FlowConfig()
        self._scheduler = scheduler or CooperativeScheduler()
        self.fretboard = fretboard or Fretboard()
        self._quiz = NoteQuizState(self._config.quiz)
        self._generator = NoteQuestionGenerator(self.fretboard, self._config.generator, rng)
        self._validator = AnswerValidator(AttemptConfig(max_attempts=self._config.quiz.max_attempts))
        self._feedback = FeedbackRegistry(self._scheduler, self._config.feedback)
        self._zone: Optional[HighlightZone] = None
        self._pause_state: PauseState = "running"
        self._paused_at: Optional[float] = None
        self._timer: Optional[TimerHandle] = None
        self._timer_started: Optional[float] = None
        self._remaining: Optional[float] = None
        self._displayed: Optional[QuizQuestion] = None
        self._bus: EventBus[FlowEvent] = EventBus("flow")

    # ---- read accessors ----

    @property
    def config(self) -> FlowConfig:
        return self._config

    @property
    def quiz_state(self) -> QuizStateName:
        return self._quiz.state

    @property
    def state(self) -> NoteQuizState:
        return self._quiz

    @property
    def feedback(self) -> FeedbackRegistry:
        return self._feedback

    @property
    def validator(self) -> AnswerValidator:
        return self._validator

    @property
    def generator(self) -> NoteQuestionGenerator:
        return self._generator

    @property
    def pause_state(self) -> PauseState:
        return self._pause_state

    @property
    def is_paused(self) -> bool:
        return self._pause_state == "paused"

    @property
    def is_auto_advance_pending(self) -> bool:
        return self._pause_state == "auto-advance-pending"

    @property
    def is_running(self) -> bool:
        return self._pause_state == "running"

    @property
    def current_question(self) -> Optional[QuizQuestion]:
        """The question the host should render.

        While an advance is pending, paused with a pending remainder, or
        waiting for a manual advance, this is the question that was just
        answered. Use `state.current_question` for the live question only.
        """
        if self.is_auto_advance_pending or (self.is_paused and self._remaining is not None):
            return self._displayed
        return self._quiz.current_question or self._displayed

    @property
    def question_stats(self) -> QuestionStats:
        return self._quiz.question_stats

    @property
    def active_zone(self) -> Optional[HighlightZone]:
        return self._zone

    @property
    def active_feedback(self) -> list[FeedbackState]:
        return self._feedback.active

    @property
    def auto_advance_remaining(self) -> Optional[float]:
        if self.is_auto_advance_pending and self._timer_started is not None and self._remaining is not None:
            elapsed = self._scheduler.now() - self._timer_started
            return max(0.0, self._remaining - elapsed)
        return self._remaining

    @property
    def paused_at(self) -> Optional[float]:
        return self._paused_at

    @property
    def paused_duration(self) -> float:
        if self._paused_at is None:
            return 0.0
        return self._scheduler.now() - self._paused_at

    def set_zone(self, zone: Optional[HighlightZone]) -> bool:
        """Replace the zone. While a quiz runs, the next question draws from it."""
        if zone is None or zone.is_empty():
            return False
        self._zone = zone
        xtrace("zone_changed", {"zone": zone.name, "positions": zone.size()})
        return True

    # ---- score & progress ----

    def get_score(self) -> ScoreData:
        correct = self._quiz.correct_answers
        total = self._quiz.questions_answered
        return ScoreData(
            correct=correct,
            total=total,
            hints_used=self._quiz.hints_used,
            total_attempts=self._quiz.total_attempts,
            display=f"{correct}/{total}",
            accuracy=round(correct / total * 100) if total > 0 else 0,
        )

    def get_progress(self) -> ProgressData:
        total = self._quiz.config.total_questions
        current = min(self._quiz.questions_answered + 1, total)
        return ProgressData(
            current_question=current,
            total_questions=total,
            display=f"Question {current} of {total}",
            percentage=round(self._quiz.questions_answered / total * 100),
        )

    def get_result(self) -> Optional[QuizResult]:
        return self._quiz.get_result()

    # ---- lifecycle ----

    def start(self, zone: HighlightZone) -> bool:
        if zone is None or zone.is_empty():
            return False
        self._validator.reset_attempts()
        self._generator.reset()
        self._clear_timer()
        if not self._quiz.start(zone):
            return False
        self._zone = zone
        self._pause_state = "running"
        self._paused_at = None
        self._emit("quiz_started", score=self.get_score(), progress=self.get_progress())
        self._next_question()
        return True

    def _next_question(self) -> bool:
        if self._zone is None:
            return False
        res = self._generator.generate_question(self._zone)
        if not res.success or res.question is None:
            print(f"[WARN] flow: could not generate question: {res.error}", file=sys.stderr)
            return False
        if not self._quiz.set_question(res.question):
            return False
        self._displayed = res.question
        self._validator.reset_attempts()
        self._emit("question_ready", question=res.question, score=self.get_score(), progress=self.get_progress())
        xtrace("question_ready", {"n": res.question.question_number, "target": res.question.target_note.position_id})
        return True

    def submit_answer(self, clicked_note: Note) -> Optional[ValidationResult]:
        """Validate a clicked note against the live question.

        Returns None when paused or when no question is live. A pending
        auto-advance is cancelled first and the advance happens immediately.
        """
        if self.is_paused:
            return None
        if self.is_auto_advance_pending:
            self._clear_timer()
            self._pause_state = "running"
            self._execute_advance()
            return None
        question = self._quiz.current_question
        if question is None or not self._quiz.can_answer:
            return None
        self._clear_timer()
        self._pause_state = "running"

        validation, _attempts = self._validator.validate_and_track(clicked_note, question.target_pitch_class)
        self._quiz.submit_answer(clicked_note)
        if validation.is_correct:
            self._feedback.show_correct(clicked_note)
        else:
            self._feedback.show_incorrect(clicked_note)
        self._emit("answer_processed", question=question, score=self.get_score(), progress=self.get_progress())
        xtrace("answer_processed", {"clicked": clicked_note.position_id, "correct": validation.is_correct})

        if validation.is_correct:
            if self._quiz.state == "complete":
                self._complete()
            elif self._config.auto_advance:
                self._schedule_advance()
        elif self._validator.attempt_state.max_attempts_reached and self._config.auto_show_hint:
            self._feedback.show_hint(question.target_note)
        return validation

    def acknowledge_hint(self) -> bool:
        self._cancel_pending_silently()
        if not self._quiz.acknowledge_hint():
            return False
        self._feedback.clear_all()
        self._validator.reset_attempts()
        if self._quiz.state == "complete":
            self._complete()
            return True
        self._next_question()
        return True

    def advance_to_next_question(self) -> bool:
        if self._quiz.state != "active":
            return False
        self._clear_timer()
        self._pause_state = "running"
        self._paused_at = None
        self._feedback.clear_all()
        self._validator.reset_attempts()
        if self._quiz.questions_answered >= self._quiz.config.total_questions:
            self._complete()
            return True
        return self._next_question()

    def _complete(self) -> None:
        self._clear_timer()
        self._pause_state = "running"
        self._feedback.clear_all()
        self._emit("quiz_completed", score=self.get_score(), progress=self.get_progress(), result=self._quiz.get_result())

    # ---- auto-advance ----

    def _schedule_advance(self) -> None:
        self._clear_timer()
        delay = self._config.auto_advance_delay_ms
        self._pause_state = "auto-advance-pending"
        self._remaining = float(delay)
        self._timer_started = self._scheduler.now()
        self._emit("auto_advance_scheduled", auto_advance_remaining=float(delay))
        self._timer = self._scheduler.schedule(delay, self._execute_advance)

    def _execute_advance(self) -> None:
        self._timer = None
        self._timer_started = None
        self._remaining = None
        self._feedback.clear_all()
        self._validator.reset_attempts()
        self._pause_state = "running"
        if self._quiz.questions_answered >= self._quiz.config.total_questions:
            self._complete()
            return
        self._next_question()

    def _clear_timer(self) -> None:
        self._scheduler.cancel(self._timer)
        self._timer = None
        self._timer_started = None
        self._remaining = None

    def _cancel_pending_silently(self) -> None:
        if self.is_auto_advance_pending:
            self._clear_timer()
            self._pause_state = "running"

    def cancel_auto_advance(self) -> bool:
        if not self.is_auto_advance_pending:
            return False
        self._clear_timer()
        self._pause_state = "running"
        self._emit("auto_advance_cancelled")
        return True

    # ---- pause/resume ----

    def pause(self) -> bool:
        if self.is_paused or not self._quiz.is_active:
            return False
        if self.is_auto_advance_pending and self._timer_started is not None and self._remaining is not None:
            elapsed = self._scheduler.now() - self._timer_started
            self._remaining = max(0.0, self._remaining - elapsed)
            self._scheduler.cancel(self._timer)
            self._timer = None
            self._timer_started = None
        self._pause_state = "paused"
        self._paused_at = self._scheduler.now()
        self._emit("paused", auto_advance_remaining=self._remaining)
        xtrace("paused", {"remaining_ms": self._remaining})
        return True

    def resume(self) -> bool:
        if not self.is_paused:
            return False
        if self._remaining is not None and self._remaining > 0:
            self._pause_state = "auto-advance-pending"
            self._timer_started = self._scheduler.now()
            self._timer = self._scheduler.schedule(self._remaining, self._execute_advance)
        elif self._remaining is not None:
            # remainder ran out exactly at pause time
            self._pause_state = "running"
            self._execute_advance()
        else:
            self._pause_state = "running"
        self._paused_at = None
        self._emit("resumed", auto_advance_remaining=self._remaining)
        xtrace("resumed", {"remaining_ms": self._remaining})
        return True

    # ---- reset & config ----

    def reset(self) -> None:
        self._clear_timer()
        self._feedback.clear_all()
        self._quiz.reset()
        self._generator.reset()
        self._validator.reset_attempts()
        self._zone = None
        self._displayed = None
        self._pause_state = "running"
        self._paused_at = None
        self._emit("quiz_reset")

    def update_config(self, **changes: Any) -> bool:
        """Apply config changes to the controller and its components.

        Refused while a quiz is running.
        """
        if self._quiz.is_active:
            return False
        self._config = merged(self._config, **changes)
        self._quiz.update_config(**self._config.quiz.model_dump())
        self._generator.update_config(**self._config.generator.model_dump())
        self._feedback.update_config(**self._config.feedback.model_dump())
        self._validator.update_config(max_attempts=self._config.quiz.max_attempts)
        return True

    def dispose(self) -> None:
        self._clear_timer()
        self._pause_state = "running"
        self._paused_at = None
        self._feedback.dispose()
        self._quiz.remove_all_listeners()
        self._bus.clear()

    # ---- events ----

    def on(self, event: str, handler: Callable[[FlowEvent], None]) -> Callable[[], None]:
        return self._bus.subscribe(event, handler)

    def off(self, event: str, handler: Callable[[FlowEvent], None]) -> None:
        self._bus.unsubscribe(event, handler)

    def remove_all_listeners(self, event: Optional[str] = None) -> None:
        self._bus.clear(event)

    def _emit(self, event: str, **fields: Any) -> None:
        self._bus.emit(
            event,
            FlowEvent(
                type=event,
                timestamp=self._scheduler.now(),
                quiz_state=self._quiz.state,
                pause_state=self._pause_state,
                **fields,
            ),
        )
