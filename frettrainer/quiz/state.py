from __future__ import annotations

"""State machine for one note-identification quiz.

    idle -> active -> answering -> active | hint | complete
    hint -> active | complete
    any  -> idle   (reset)

Pausing is handled by the flow controller; the machine itself has no
paused state.
"""

from dataclasses import dataclass, replace
from typing import Any, Callable, Optional

from ..app.events import EventBus
from ..app.explain import trace as xtrace
from ..config.settings import QuizConfig, merged
from ..theory.note import Note
from ..zones.zone import HighlightZone
from .models import AnswerOutcome, QuestionStats, QuizQuestion, QuizResult, QuizStateName


QUIZ_EVENTS = (
    "state_change",
    "question_generated",
    "answer_attempt",
    "correct_answer",
    "incorrect_answer",
    "hint_shown",
    "quiz_complete",
)


@dataclass(frozen=True)
class QuizEvent:
    type: str
    state: QuizStateName
    previous_state: Optional[QuizStateName] = None
    question: Optional[QuizQuestion] = None
    clicked_note: Optional[Note] = None
    attempt_number: Optional[int] = None
    result: Optional[QuizResult] = None


class NoteQuizState:
    def __init__(self, config: Optional[QuizConfig] = None) -> None:
        self._config = config or QuizConfig()
        self._state: QuizStateName = "idle"
        self._question: Optional[QuizQuestion] = None
        self._stats = QuestionStats()
        self._answered = 0
        self._correct = 0
        self._hints = 0
        self._attempts = 0
        self._zone: Optional[HighlightZone] = None
        self._bus: EventBus[QuizEvent] = EventBus("quiz")

    # ---- read accessors ----

    @property
    def state(self) -> QuizStateName:
        return self._state

    @property
    def current_question(self) -> Optional[QuizQuestion]:
        return self._question

    @property
    def question_stats(self) -> QuestionStats:
        return replace(self._stats)

    @property
    def questions_answered(self) -> int:
        return self._answered

    @property
    def correct_answers(self) -> int:
        return self._correct

    @property
    def hints_used(self) -> int:
        return self._hints

    @property
    def total_attempts(self) -> int:
        return self._attempts

    @property
    def config(self) -> QuizConfig:
        return self._config

    @property
    def active_zone(self) -> Optional[HighlightZone]:
        return self._zone

    @property
    def can_answer(self) -> bool:
        return self._state == "active"

    @property
    def can_start(self) -> bool:
        return self._state == "idle"

    @property
    def is_active(self) -> bool:
        return self._state in ("active", "answering", "hint")

    @property
    def score_display(self) -> str:
        return f"{self._correct}/{self._answered}"

    @property
    def progress_display(self) -> str:
        return f"Question {self._answered + 1} of {self._config.total_questions}"

    # ---- transitions ----

    def start(self, zone: HighlightZone) -> bool:
        if self._state != "idle" or zone.is_empty():
            return False
        self._zone = zone
        self._answered = self._correct = self._hints = self._attempts = 0
        self._set_state("active")
        xtrace("quiz_started", {"zone": zone.name, "positions": zone.size(), "total": self._config.total_questions})
        return True

    def set_question(self, question: QuizQuestion) -> bool:
        if self._state != "active":
            return False
        self._question = question
        self._stats = QuestionStats()
        self._emit("question_generated", question=question)
        return True

    def submit_answer(self, clicked_note: Note) -> AnswerOutcome:
        if self._state != "active" or self._question is None:
            return "invalid"
        question = self._question
        self._state = "answering"
        self._stats.attempts += 1
        self._attempts += 1
        self._emit(
            "answer_attempt",
            previous_state="active",
            question=question,
            clicked_note=clicked_note,
            attempt_number=self._stats.attempts,
        )
        if clicked_note.pitch_class == question.target_pitch_class:
            self._on_correct(question, clicked_note)
            return "correct"
        self._on_incorrect(question, clicked_note)
        return "incorrect"

    def _on_correct(self, question: QuizQuestion, clicked_note: Note) -> None:
        self._stats.answered_correctly = True
        self._correct += 1
        self._answered += 1
        self._emit("correct_answer", question=question, clicked_note=clicked_note, attempt_number=self._stats.attempts)
        if self._answered >= self._config.total_questions:
            self._complete()
            return
        self._question = None
        self._set_state("active")

    def _on_incorrect(self, question: QuizQuestion, clicked_note: Note) -> None:
        self._emit("incorrect_answer", question=question, clicked_note=clicked_note, attempt_number=self._stats.attempts)
        if self._stats.attempts >= self._config.max_attempts:
            self._state = "hint"
            self._stats.hint_shown = True
            self._hints += 1
            self._emit("hint_shown", previous_state="answering", question=question)
            return
        self._set_state("active")

    def acknowledge_hint(self) -> bool:
        if self._state != "hint":
            return False
        self._answered += 1
        if self._answered >= self._config.total_questions:
            self._complete()
            return True
        self._question = None
        self._set_state("active")
        return True

    def reset(self) -> None:
        prev = self._state
        self._state = "idle"
        self._question = None
        self._stats = QuestionStats()
        self._answered = self._correct = self._hints = self._attempts = 0
        self._zone = None
        if prev != "idle":
            self._emit("state_change", previous_state=prev)

    def update_config(self, **changes: Any) -> bool:
        """Refused while a quiz is running."""
        if self.is_active:
            return False
        self._config = merged(self._config, **changes)
        return True

    def get_result(self) -> Optional[QuizResult]:
        if self._state != "complete":
            return None
        return self._calculate_result()

    def _complete(self) -> None:
        prev = self._state
        self._state = "complete"
        self._question = None
        result = self._calculate_result()
        self._emit("quiz_complete", previous_state=prev, result=result)
        self._emit("state_change", previous_state=prev)
        xtrace("quiz_complete", {"correct": result.correct_answers, "answered": result.total_questions})

    def _calculate_result(self) -> QuizResult:
        accuracy = round(self._correct / self._answered * 100) if self._answered > 0 else 0
        avg = round(self._attempts / self._correct * 100) / 100 if self._correct > 0 else 0
        return QuizResult(
            total_questions=self._answered,
            correct_answers=self._correct,
            hints_used=self._hints,
            total_attempts=self._attempts,
            accuracy=accuracy,
            average_attempts=avg,
        )

    # ---- events ----

    def on(self, event: str, handler: Callable[[QuizEvent], None]) -> Callable[[], None]:
        return self._bus.subscribe(event, handler)

    def off(self, event: str, handler: Callable[[QuizEvent], None]) -> None:
        self._bus.unsubscribe(event, handler)

    def remove_all_listeners(self, event: Optional[str] = None) -> None:
        self._bus.clear(event)

    def _set_state(self, new_state: QuizStateName) -> None:
        prev = self._state
        self._state = new_state
        self._emit("state_change", previous_state=prev)

    def _emit(self, event: str, **fields: Any) -> None:
        self._bus.emit(event, QuizEvent(type=event, state=self._state, **fields))
