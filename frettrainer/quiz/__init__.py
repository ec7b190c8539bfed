"""Quiz engine: validation, question generation, state machine, feedback and mastery tracking."""

from .models import (  # noqa: F401
    AttemptState,
    FeedbackState,
    GenerationResult,
    NotePerformanceData,
    NoteStats,
    QuestionStats,
    QuizQuestion,
    QuizResult,
    StringStats,
    ValidationResult,
)
from .validator import AnswerValidator  # noqa: F401
from .generator import NoteQuestionGenerator  # noqa: F401
from .state import NoteQuizState, QuizEvent  # noqa: F401
from .feedback import FeedbackEvent, FeedbackRegistry  # noqa: F401
from .progressive import ProgressiveMasteryTracker, STRING_PROGRESSION, pitch_class_for_position  # noqa: F401
