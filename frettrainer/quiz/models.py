from __future__ import annotations

"""Value types shared by the quiz components."""

from dataclasses import dataclass, field
from typing import List, Literal, Optional, Tuple

from ..theory.note import Note


QuizStateName = Literal["idle", "active", "answering", "hint", "complete"]
AnswerOutcome = Literal["correct", "incorrect", "invalid"]
FeedbackType = Literal["correct", "incorrect", "hint", "none"]


@dataclass(frozen=True)
class QuizQuestion:
    target_note: Note
    target_pitch_class: str
    question_number: int
    question_text: str


@dataclass(frozen=True)
class AttemptState:
    """Snapshot of the attempt counter for the current question.

    remaining_attempts is math.inf when attempts are unlimited.
    """

    attempts: int
    max_attempts_reached: bool
    should_show_hint: bool
    remaining_attempts: float
    incorrect_attempts: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ValidationResult:
    is_correct: bool
    clicked_pitch_class: str
    target_pitch_class: str
    was_enharmonic_match: bool
    is_exact_pitch_match: bool
    feedback_message: str


@dataclass
class QuestionStats:
    attempts: int = 0
    hint_shown: bool = False
    answered_correctly: bool = False


@dataclass(frozen=True)
class QuizResult:
    total_questions: int
    correct_answers: int
    hints_used: int
    total_attempts: int
    accuracy: int
    average_attempts: float


@dataclass(frozen=True)
class GenerationResult:
    success: bool
    question: Optional[QuizQuestion] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, question: QuizQuestion) -> "GenerationResult":
        return cls(True, question, None)

    @classmethod
    def fail(cls, error: str) -> "GenerationResult":
        return cls(False, None, error)


@dataclass(frozen=True)
class FeedbackState:
    position_id: str
    type: FeedbackType
    start_time: float
    duration: float
    pulse_count: Optional[int] = None


@dataclass
class NotePerformanceData:
    """Ledger entry for one (string, fret). Answer times are in seconds."""

    attempts: int = 0
    correct: int = 0
    answer_times: List[float] = field(default_factory=list)
    last_attempt_time: float = 0.0

    @property
    def accuracy(self) -> float:
        return (self.correct / self.attempts) * 100 if self.attempts > 0 else 0.0

    @property
    def average_time(self) -> Optional[float]:
        if not self.answer_times:
            return None
        return sum(self.answer_times) / len(self.answer_times)

    def copy(self) -> "NotePerformanceData":
        return NotePerformanceData(self.attempts, self.correct, list(self.answer_times), self.last_attempt_time)


@dataclass(frozen=True)
class NoteStats:
    string: int
    fret: int
    pitch_class: str
    accuracy: float
    average_time: Optional[float]
    attempts: int
    correct: int
    is_unlocked: bool
    meets_unlock_criteria: bool


@dataclass(frozen=True)
class StringStats:
    total_attempts: int
    total_correct: int
    overall_accuracy: float
    unlocked_notes: int
    total_notes: int = 12
