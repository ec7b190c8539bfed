from __future__ import annotations

"""Typed configuration models for every quiz component (Pydantic).

Models are frozen; use `merged(model, **changes)` to derive an updated copy
that is validated again.
"""

from typing import Any, Dict, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..theory.keys import normalize_pitch_class


M = TypeVar("M", bound=BaseModel)

PitchClassFilter = Literal["natural", "sharps", "flats", "both", "custom"]
DisplayPreference = Literal["sharps", "flats", "both"]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class AttemptConfig(_Frozen):
    """Attempt budget per question before a hint is due."""

    max_attempts: int = Field(3, ge=1, le=20)
    unlimited_attempts: bool = False


class GeneratorConfig(_Frozen):
    pitch_class_filter: PitchClassFilter = "sharps"
    custom_pitch_classes: Optional[List[str]] = None
    display_preference: DisplayPreference = "sharps"
    avoid_consecutive_repeats: bool = True

    @field_validator("custom_pitch_classes")
    @classmethod
    def _normalize_custom(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return None
        out: List[str] = []
        for name in v:
            pc = normalize_pitch_class(str(name))
            if pc not in out:
                out.append(pc)
        return out


class QuizConfig(_Frozen):
    max_attempts: int = Field(3, ge=1, le=20)
    total_questions: int = Field(10, ge=1, le=1000)


class FeedbackConfig(_Frozen):
    """Durations in milliseconds for each feedback kind."""

    correct_duration_ms: int = Field(500, ge=0)
    incorrect_duration_ms: int = Field(500, ge=0)
    hint_pulse_duration_ms: int = Field(500, ge=0)
    hint_pulse_count: int = Field(3, ge=1, le=10)


class ProgressiveConfig(_Frozen):
    """Thresholds for progressive unlocking and weighted target selection.

    - accuracy_threshold: percent accuracy a position needs to count as mastered
    - average_time_threshold: mean answer time in seconds needed to unlock
    - max_answer_time_to_count: slower samples are ignored as distractions
    - min_attempts_to_unlock: attempts before a position is evaluated at all
    - next_note_delay_ms: pause after a correct answer in progressive sessions
    - low_accuracy_weight / unlearned_note_weight: sampling boosts
    - struggling_accuracy_threshold: below this a position counts as struggling
    - min_attempts_for_learned: attempts before accuracy affects sampling
    - current_string_probability: share of questions from the learning string
    """

    accuracy_threshold: float = Field(80.0, ge=0, le=100)
    average_time_threshold: float = Field(3.0, gt=0)
    max_answer_time_to_count: float = Field(20.0, gt=0)
    min_attempts_to_unlock: int = Field(3, ge=1)
    next_note_delay_ms: int = Field(800, ge=0)
    low_accuracy_weight: float = Field(2.0, ge=1)
    unlearned_note_weight: float = Field(2.0, gt=0)
    struggling_accuracy_threshold: float = Field(70.0, gt=0, le=100)
    min_attempts_for_learned: int = Field(3, ge=1)
    current_string_probability: float = Field(0.8, ge=0, le=1)


class FlowConfig(_Frozen):
    auto_advance: bool = True
    auto_advance_delay_ms: int = Field(1000, ge=0, le=30000)
    auto_show_hint: bool = True
    quiz: QuizConfig = Field(default_factory=QuizConfig)
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
    feedback: FeedbackConfig = Field(default_factory=FeedbackConfig)


class AppConfig(_Frozen):
    """Everything loaded from defaults.yml plus a user file."""

    tuning: str = "standard"
    fret_count: int = Field(24, ge=12, le=36)
    flow: FlowConfig = Field(default_factory=FlowConfig)
    progressive: ProgressiveConfig = Field(default_factory=ProgressiveConfig)
    progress_path: str = "./progress.json"


def deep_merge(base: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in changes.items():
        if isinstance(v, BaseModel):
            v = v.model_dump()
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def merged(model: M, **changes: Any) -> M:
    """Return a validated copy of `model` with `changes` applied (nested dicts merge)."""
    return type(model).model_validate(deep_merge(model.model_dump(), changes))
