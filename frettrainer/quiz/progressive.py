from __future__ import annotations

"""Progressive mastery tracking across the six guitar strings.

Learning runs from the low E string up to the high E string. Each string
opens one fret at a time (frets 0..11); a fret opens once every unlocked
fret on that string meets the unlock criterion, and a fully opened string
hands over to the next one. Progress only moves forward unless one of the
explicit override methods is used.
"""

import random
import time
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from ..config.settings import ProgressiveConfig, merged
from ..theory.keys import pitch_class_from_index, pitch_class_index
from ..util.randomness import weighted_index
from .models import NotePerformanceData, NoteStats, StringStats


SNAPSHOT_SCHEMA = 2

FRETS_PER_STRING = 12

# learning order, low E first
STRING_PROGRESSION: Tuple[int, ...] = (6, 5, 4, 3, 2, 1)

STRING_NAMES: Dict[int, str] = {6: "Low E", 5: "A", 4: "D", 3: "G", 2: "B", 1: "High E"}

STRING_OPEN_NOTES: Dict[int, str] = {6: "E", 5: "A", 4: "D", 3: "G", 2: "B", 1: "E"}

STRING_NOTES: Dict[int, List[str]] = {
    s: [pitch_class_from_index(pitch_class_index(open_pc) + i) for i in range(FRETS_PER_STRING)]
    for s, open_pc in STRING_OPEN_NOTES.items()
}


def _check_position(string: int, fret: int) -> None:
    if fret < 0 or fret > FRETS_PER_STRING - 1:
        raise ValueError(f"Fret must be between 0 and {FRETS_PER_STRING - 1}, got {fret}")
    if string < 1 or string > 6:
        raise ValueError(f"String must be between 1 and 6, got {string}")


def pitch_class_for_position(string: int, fret: int) -> str:
    """Pitch class at a position in standard tuning (frets 0..11)."""
    _check_position(string, fret)
    return STRING_NOTES[string][fret]


def _wall_clock_ms() -> float:
    return time.time() * 1000.0


class ProgressiveMasteryTracker:
    """Per-position performance ledger with forward-only unlocking."""

    def __init__(
        self,
        config: Optional[ProgressiveConfig] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self._config = config or ProgressiveConfig()
        self._rng = rng or random.Random()
        self._clock = clock or _wall_clock_ms
        self._performance: Dict[int, Dict[int, NotePerformanceData]] = {}
        self._unlocked: Dict[int, int] = {}
        self._index = 0
        self._fill_missing()

    def _fill_missing(self) -> None:
        for idx, s in enumerate(STRING_PROGRESSION):
            per = self._performance.setdefault(s, {})
            for f in range(FRETS_PER_STRING):
                per.setdefault(f, NotePerformanceData())
            if s not in self._unlocked:
                if idx < self._index:
                    self._unlocked[s] = FRETS_PER_STRING
                elif idx == self._index:
                    self._unlocked[s] = 1
                else:
                    self._unlocked[s] = 0

    # ---- configuration ----

    @property
    def config(self) -> ProgressiveConfig:
        return self._config

    def update_config(self, **changes: Any) -> None:
        self._config = merged(self._config, **changes)

    # ---- progression queries ----

    @property
    def current_string_index(self) -> int:
        return self._index

    @property
    def current_string(self) -> int:
        return STRING_PROGRESSION[self._index]

    @property
    def unlocked_frets(self) -> int:
        return self._unlocked.get(self.current_string, 0)

    def unlocked_frets_for_string(self, string: int) -> int:
        return self._unlocked.get(string, 0)

    @property
    def highest_unlocked_fret(self) -> int:
        return max(0, self.unlocked_frets - 1)

    @property
    def current_string_complete(self) -> bool:
        return self.unlocked_frets >= FRETS_PER_STRING

    @property
    def all_strings_complete(self) -> bool:
        return self._index >= len(STRING_PROGRESSION) - 1 and self.current_string_complete

    @property
    def mastered_strings(self) -> List[int]:
        return list(STRING_PROGRESSION[: self._index])

    @property
    def unlocked_strings(self) -> List[int]:
        return list(STRING_PROGRESSION[: self._index + 1])

    def is_string_mastered(self, string: int) -> bool:
        return string in STRING_PROGRESSION and STRING_PROGRESSION.index(string) < self._index

    def is_string_unlocked(self, string: int) -> bool:
        return string in STRING_PROGRESSION and STRING_PROGRESSION.index(string) <= self._index

    def is_position_unlocked(self, string: int, fret: int) -> bool:
        if not self.is_string_unlocked(string):
            return False
        return 0 <= fret < self.unlocked_frets_for_string(string)

    def unlocked_pitch_classes(self, string: Optional[int] = None) -> Set[str]:
        s = self.current_string if string is None else string
        notes = STRING_NOTES[s]
        return {notes[f] for f in range(self.unlocked_frets_for_string(s))}

    @staticmethod
    def pitch_class_for_position(string: int, fret: int) -> str:
        return pitch_class_for_position(string, fret)

    # ---- recording ----

    def record_attempt(self, string: int, fret: int, correct: bool, answer_time_seconds: float) -> None:
        """Record one answer and re-check unlocking for that string only.

        Times above max_answer_time_to_count still count as an attempt but
        are left out of the timing average.
        """
        _check_position(string, fret)
        perf = self._performance[string][fret]
        perf.attempts += 1
        if correct:
            perf.correct += 1
        if answer_time_seconds <= self._config.max_answer_time_to_count:
            perf.answer_times.append(float(answer_time_seconds))
        perf.last_attempt_time = self._clock()
        self._check_and_unlock_next(string)

    # ---- statistics ----

    def performance_data(self, string: int, fret: int) -> NotePerformanceData:
        _check_position(string, fret)
        return self._performance[string][fret].copy()

    def note_stats(self, string: int, fret: int) -> NoteStats:
        _check_position(string, fret)
        perf = self._performance[string][fret]
        return NoteStats(
            string=string,
            fret=fret,
            pitch_class=STRING_NOTES[string][fret],
            accuracy=perf.accuracy,
            average_time=perf.average_time,
            attempts=perf.attempts,
            correct=perf.correct,
            is_unlocked=fret < self.unlocked_frets_for_string(string),
            meets_unlock_criteria=self._meets_unlock_criteria(string, fret),
        )

    def string_note_stats(self, string: int) -> List[NoteStats]:
        return [self.note_stats(string, f) for f in range(FRETS_PER_STRING)]

    def string_overall_stats(self, string: int) -> StringStats:
        """Totals over the unlocked frets of one string."""
        unlocked = self.unlocked_frets_for_string(string)
        attempts = correct = 0
        for f in range(unlocked):
            perf = self._performance[string][f]
            attempts += perf.attempts
            correct += perf.correct
        return StringStats(
            total_attempts=attempts,
            total_correct=correct,
            overall_accuracy=(correct / attempts) * 100 if attempts > 0 else 0.0,
            unlocked_notes=unlocked,
        )

    # ---- question targets ----

    def generate_question_target(self) -> Tuple[int, int]:
        """Pick the next (string, fret) to ask.

        Most questions come from the string being learned; the rest revisit a
        random mastered string across all of its frets.
        """
        mastered = self.mastered_strings
        if not mastered or self._rng.random() < self._config.current_string_probability:
            s = self.current_string
            return s, self._select_weighted_fret(s, max(1, self.unlocked_frets))
        s = mastered[int(self._rng.random() * len(mastered))]
        return s, self._select_weighted_fret(s, FRETS_PER_STRING)

    def fret_weights(self, string: int, fret_count: int) -> List[float]:
        cfg = self._config
        weights: List[float] = []
        for f in range(fret_count):
            perf = self._performance[string][f]
            w = 1.0
            if perf.attempts < cfg.min_attempts_for_learned:
                w *= cfg.unlearned_note_weight
            else:
                acc = perf.accuracy
                if acc < cfg.struggling_accuracy_threshold:
                    struggle = (cfg.struggling_accuracy_threshold - acc) / cfg.struggling_accuracy_threshold
                    w *= 1 + (cfg.low_accuracy_weight - 1) * struggle
                elif acc >= cfg.accuracy_threshold:
                    w *= 0.5
            weights.append(w)
        return weights

    def _select_weighted_fret(self, string: int, fret_count: int) -> int:
        return weighted_index(self.fret_weights(string, fret_count), self._rng)

    # ---- unlocking ----

    def _meets_unlock_criteria(self, string: int, fret: int) -> bool:
        perf = self._performance.get(string, {}).get(fret)
        if perf is None:
            return False
        cfg = self._config
        if perf.attempts < cfg.min_attempts_to_unlock:
            return False
        if perf.accuracy < cfg.accuracy_threshold:
            return False
        avg = perf.average_time
        if avg is None:
            return False
        return avg <= cfg.average_time_threshold

    def _check_and_unlock_next(self, string: int) -> None:
        unlocked = self.unlocked_frets_for_string(string)
        if not all(self._meets_unlock_criteria(string, f) for f in range(unlocked)):
            return
        if unlocked < FRETS_PER_STRING:
            self._unlocked[string] = unlocked + 1
        elif string == self.current_string and self._index < len(STRING_PROGRESSION) - 1:
            self._index += 1
            self._unlocked[STRING_PROGRESSION[self._index]] = 1

    # ---- overrides ----

    def force_unlock(self, num_frets: int) -> None:
        self._unlocked[self.current_string] = max(1, min(FRETS_PER_STRING, int(num_frets)))

    def force_string_index(self, index: int) -> None:
        self._index = max(0, min(len(STRING_PROGRESSION) - 1, int(index)))
        for s in STRING_PROGRESSION[: self._index]:
            self._unlocked[s] = FRETS_PER_STRING
        if self._unlocked.get(self.current_string, 0) < 1:
            self._unlocked[self.current_string] = 1

    def reset(self) -> None:
        self._index = 0
        self._performance = {}
        self._unlocked = {}
        self._fill_missing()

    # ---- snapshot ----

    def to_snapshot(self) -> Dict[str, Any]:
        return {
            "schema": SNAPSHOT_SCHEMA,
            "config": self._config.model_dump(),
            "performance": {
                str(s): {
                    str(f): {
                        "attempts": p.attempts,
                        "correct": p.correct,
                        "answer_times": list(p.answer_times),
                        "last_attempt_time": p.last_attempt_time,
                    }
                    for f, p in sorted(per.items())
                }
                for s, per in sorted(self._performance.items())
            },
            "unlocked_frets_per_string": {str(s): n for s, n in sorted(self._unlocked.items())},
            "current_string_index": self._index,
        }

    @classmethod
    def from_snapshot(
        cls,
        data: Dict[str, Any],
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> "ProgressiveMasteryTracker":
        """Rebuild a tracker from a snapshot.

        Older single-string snapshots are upgraded first; newer schemas raise
        ValueError.
        """
        schema = int(data.get("schema", 0) or 0)
        if schema > SNAPSHOT_SCHEMA:
            raise ValueError(f"Unsupported snapshot schema {schema}; expected {SNAPSHOT_SCHEMA}")
        if schema < SNAPSHOT_SCHEMA:
            from ..results.migrations import migrate_snapshot

            data = migrate_snapshot(data)
        cfg = ProgressiveConfig.model_validate(data.get("config") or {})
        tracker = cls(cfg, rng=rng, clock=clock)
        tracker._performance = {}
        tracker._unlocked = {}
        tracker._index = max(0, min(len(STRING_PROGRESSION) - 1, int(data.get("current_string_index", 0))))
        for s_key, frets in (data.get("performance") or {}).items():
            per = tracker._performance.setdefault(int(s_key), {})
            for f_key, p in frets.items():
                per[int(f_key)] = NotePerformanceData(
                    attempts=int(p.get("attempts", 0)),
                    correct=int(p.get("correct", 0)),
                    answer_times=[float(t) for t in p.get("answer_times", [])],
                    last_attempt_time=float(p.get("last_attempt_time", 0)),
                )
        for s_key, n in (data.get("unlocked_frets_per_string") or {}).items():
            tracker._unlocked[int(s_key)] = int(n)
        tracker._fill_missing()
        return tracker
