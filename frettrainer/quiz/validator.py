from __future__ import annotations

"""Answer validation and per-question attempt bookkeeping.

Comparison is by pitch class only, so any octave of the target counts.
Enharmonic spellings collapse to the canonical sharp name before comparing.
"""

import math
from typing import Any, List, Optional, Tuple

from ..config.settings import AttemptConfig, merged
from ..theory.keys import is_natural, normalize_pitch_class, to_flat_name
from ..theory.note import Note
from .models import AttemptState, ValidationResult


class AnswerValidator:
    def __init__(self, config: Optional[AttemptConfig] = None) -> None:
        self._config = config or AttemptConfig()
        self._attempts = 0
        self._incorrect: List[str] = []

    # ---- stateless helpers ----

    @staticmethod
    def normalize_to_pitch_class(name: str) -> str:
        return normalize_pitch_class(name)

    @staticmethod
    def are_enharmonic_equivalent(a: str, b: str) -> bool:
        return normalize_pitch_class(a) == normalize_pitch_class(b)

    @staticmethod
    def get_enharmonic_spellings(pitch_class: str) -> List[str]:
        pc = normalize_pitch_class(pitch_class)
        if is_natural(pc):
            return [pc]
        return [pc, to_flat_name(pc)]

    @staticmethod
    def validate_answer(clicked_note: Note, target_pitch_class: str) -> ValidationResult:
        """Judge a clicked note against a target pitch class.

        Args:
            clicked_note: Note resolved from the clicked position.
            target_pitch_class: Pitch class to find; flat spellings accepted.

        Returns:
            ValidationResult with a human-readable feedback message.
        """
        target = normalize_pitch_class(target_pitch_class)
        clicked = clicked_note.pitch_class
        ok = clicked == target
        if ok:
            msg = f"Correct! That is {target}."
        else:
            msg = f"Incorrect. You clicked {clicked_note.display_name('sharps')}, but the target was {target}."
        return ValidationResult(
            is_correct=ok,
            clicked_pitch_class=clicked,
            target_pitch_class=target,
            was_enharmonic_match=ok,
            is_exact_pitch_match=ok,
            feedback_message=msg,
        )

    @staticmethod
    def validate_exact_note(clicked_note: Note, target_note: Note) -> ValidationResult:
        """Pitch-class match counts as correct; is_exact_pitch_match also needs the octave."""
        pc_match = clicked_note.pitch_class == target_note.pitch_class
        exact = clicked_note.midi_number == target_note.midi_number
        if exact:
            msg = f"Correct! That is {target_note.full_name()}."
        elif pc_match:
            msg = f"You found {target_note.pitch_class}, but in a different octave."
        else:
            msg = f"Incorrect. You clicked {clicked_note.full_name()}, but the target was {target_note.full_name()}."
        return ValidationResult(
            is_correct=pc_match,
            clicked_pitch_class=clicked_note.pitch_class,
            target_pitch_class=target_note.pitch_class,
            was_enharmonic_match=pc_match,
            is_exact_pitch_match=exact,
            feedback_message=msg,
        )

    # ---- attempt tracking ----

    @property
    def config(self) -> AttemptConfig:
        return self._config

    def update_config(self, **changes: Any) -> None:
        self._config = merged(self._config, **changes)

    def reset_attempts(self) -> None:
        self._attempts = 0
        self._incorrect = []

    def record_attempt(self, correct: bool, pitch_class: Optional[str] = None) -> AttemptState:
        self._attempts += 1
        if not correct and pitch_class:
            self._incorrect.append(normalize_pitch_class(pitch_class))
        return self.attempt_state

    @property
    def attempt_state(self) -> AttemptState:
        reached = not self._config.unlimited_attempts and self._attempts >= self._config.max_attempts
        return AttemptState(
            attempts=self._attempts,
            max_attempts_reached=reached,
            should_show_hint=reached,
            remaining_attempts=self.remaining_attempts,
            incorrect_attempts=tuple(self._incorrect),
        )

    @property
    def remaining_attempts(self) -> float:
        if self._config.unlimited_attempts:
            return math.inf
        return max(0, self._config.max_attempts - self._attempts)

    def can_attempt(self) -> bool:
        if self._config.unlimited_attempts:
            return True
        return self._attempts < self._config.max_attempts

    def validate_and_track(self, clicked_note: Note, target_pitch_class: str) -> Tuple[ValidationResult, AttemptState]:
        validation = self.validate_answer(clicked_note, target_pitch_class)
        state = self.record_attempt(validation.is_correct, clicked_note.pitch_class)
        return validation, state
