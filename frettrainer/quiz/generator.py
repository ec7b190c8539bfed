from __future__ import annotations

"""Question generation over a highlight zone.

Picks a pitch class first, then a position in the zone that sounds it, so
pitch classes that appear at many positions are not over-represented.
"""

import random
from typing import Any, Dict, List, Optional, Sequence

from ..config.settings import GeneratorConfig, merged
from ..theory.fretboard import Fretboard
from ..theory.keys import NATURAL_NOTES, PITCH_CLASS_NAMES, is_natural, normalize_pitch_class, to_flat_name
from ..theory.note import Note
from ..zones.zone import HighlightZone
from .models import GenerationResult, QuizQuestion


class NoteQuestionGenerator:
    def __init__(
        self,
        fretboard: Optional[Fretboard] = None,
        config: Optional[GeneratorConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.fretboard = fretboard or Fretboard()
        self._config = config or GeneratorConfig()
        self._rng = rng or random.Random()
        self._question_number = 0
        self._last_pitch_class: Optional[str] = None

    @property
    def config(self) -> GeneratorConfig:
        return self._config

    def update_config(self, **changes: Any) -> None:
        self._config = merged(self._config, **changes)

    @property
    def question_number(self) -> int:
        return self._question_number

    @property
    def last_pitch_class(self) -> Optional[str]:
        return self._last_pitch_class

    def reset(self) -> None:
        self._question_number = 0
        self._last_pitch_class = None

    # ---- filtering ----

    def allowed_pitch_classes(self) -> List[str]:
        f = self._config.pitch_class_filter
        if f == "natural":
            return list(NATURAL_NOTES)
        if f == "custom" and self._config.custom_pitch_classes:
            return list(self._config.custom_pitch_classes)
        return list(PITCH_CLASS_NAMES)

    def candidate_notes(self, zone: HighlightZone) -> List[Note]:
        allowed = set(self.allowed_pitch_classes())
        out: List[Note] = []
        for pos in zone.get_all_notes():
            note = self.fretboard.get_note_at(pos.string, pos.fret)
            if note is not None and note.pitch_class in allowed:
                out.append(note)
        return out

    # ---- selection ----

    def select_pitch_class(self, options: Sequence[str]) -> Optional[str]:
        if not options:
            return None
        if len(options) == 1:
            return options[0]
        if self._config.avoid_consecutive_repeats and self._last_pitch_class is not None:
            fresh = [pc for pc in options if pc != self._last_pitch_class]
            if fresh:
                return self._rng.choice(fresh)
        return self._rng.choice(list(options))

    def select_note_with_pitch_class(self, candidates: Sequence[Note], pitch_class: str) -> Optional[Note]:
        matching = [n for n in candidates if n.pitch_class == pitch_class]
        if not matching:
            return None
        return self._rng.choice(matching)

    def display_name(self, pitch_class: str) -> str:
        if is_natural(pitch_class):
            return pitch_class
        pref = self._config.display_preference
        if pref == "flats":
            return to_flat_name(pitch_class)
        if pref == "both":
            return to_flat_name(pitch_class) if self._rng.random() < 0.5 else pitch_class
        return pitch_class

    def format_question_text(self, pitch_class: str) -> str:
        return f"Find {self.display_name(pitch_class)}"

    # ---- generation ----

    def generate_question(self, zone: HighlightZone) -> GenerationResult:
        if zone.is_empty():
            return GenerationResult.fail("Cannot generate question from empty zone")
        candidates = self.candidate_notes(zone)
        if not candidates:
            return GenerationResult.fail("No notes in zone match the allowed pitch classes")
        options = sorted({n.pitch_class for n in candidates}, key=PITCH_CLASS_NAMES.index)
        pc = self.select_pitch_class(options)
        if pc is None:
            return GenerationResult.fail("Failed to select a pitch class")
        target = self.select_note_with_pitch_class(candidates, pc)
        if target is None:
            return GenerationResult.fail("Failed to select target note")
        return GenerationResult.ok(self._make_question(target, pc))

    def generate_question_with_pitch_class(self, zone: HighlightZone, pitch_class: str) -> GenerationResult:
        if zone.is_empty():
            return GenerationResult.fail("Cannot generate question from empty zone")
        pc = normalize_pitch_class(pitch_class)
        target = self.select_note_with_pitch_class(self.candidate_notes(zone), pc)
        if target is None:
            return GenerationResult.fail(f"No notes with pitch class {pc} found in zone")
        return GenerationResult.ok(self._make_question(target, pc))

    def _make_question(self, target: Note, pitch_class: str) -> QuizQuestion:
        self._question_number += 1
        self._last_pitch_class = pitch_class
        return QuizQuestion(
            target_note=target,
            target_pitch_class=pitch_class,
            question_number=self._question_number,
            question_text=self.format_question_text(pitch_class),
        )

    def zone_statistics(self, zone: HighlightZone) -> Dict[str, Any]:
        candidates = self.candidate_notes(zone)
        pcs = sorted({n.pitch_class for n in candidates}, key=PITCH_CLASS_NAMES.index)
        return {
            "total_positions": zone.size(),
            "candidate_count": len(candidates),
            "available_pitch_classes": pcs,
            "excluded_count": zone.size() - len(candidates),
        }
