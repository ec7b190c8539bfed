from __future__ import annotations

"""Fretboard geometry: tunings and the (string, fret) -> Note lookup."""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .keys import note_name_to_midi
from .note import Note


# (pitch class, octave) per string, string 1 (high) first
STANDARD_TUNING: List[Tuple[str, int]] = [("E", 4), ("B", 3), ("G", 3), ("D", 3), ("A", 2), ("E", 2)]
DROP_D_TUNING: List[Tuple[str, int]] = [("E", 4), ("B", 3), ("G", 3), ("D", 3), ("A", 2), ("D", 2)]
OPEN_G_TUNING: List[Tuple[str, int]] = [("D", 4), ("B", 3), ("G", 3), ("D", 3), ("G", 2), ("D", 2)]

TUNINGS: Dict[str, List[Tuple[str, int]]] = {
    "standard": STANDARD_TUNING,
    "drop_d": DROP_D_TUNING,
    "open_g": OPEN_G_TUNING,
}


@dataclass(frozen=True)
class FretboardConfig:
    tuning: Tuple[Tuple[str, int], ...] = tuple(STANDARD_TUNING)
    fret_count: int = 24

    @property
    def string_count(self) -> int:
        return len(self.tuning)


class Fretboard:
    """Precomputed grid of notes for a tuning, frets 0..fret_count inclusive."""

    def __init__(self, config: Optional[FretboardConfig] = None) -> None:
        self.config = config or FretboardConfig()
        self._by_position: Dict[Tuple[int, int], Note] = {}
        for string, (name, octave) in enumerate(self.config.tuning, start=1):
            open_midi = note_name_to_midi(name, octave)
            for fret in range(self.config.fret_count + 1):
                self._by_position[(string, fret)] = Note.from_midi(open_midi + fret, string, fret)

    @classmethod
    def from_tuning_name(cls, name: str, fret_count: int = 24) -> "Fretboard":
        if name not in TUNINGS:
            raise KeyError(f"Unknown tuning: {name}")
        return cls(FretboardConfig(tuning=tuple(TUNINGS[name]), fret_count=fret_count))

    @property
    def string_count(self) -> int:
        return self.config.string_count

    @property
    def fret_count(self) -> int:
        return self.config.fret_count

    def get_note_at(self, string: int, fret: int) -> Optional[Note]:
        return self._by_position.get((string, fret))

    def notes_on_string(self, string: int) -> List[Note]:
        return [n for (s, _f), n in sorted(self._by_position.items()) if s == string]

    def notes_with_pitch_class(self, pitch_class: str) -> List[Note]:
        return [n for _k, n in sorted(self._by_position.items()) if n.pitch_class == pitch_class]
