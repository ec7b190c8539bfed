from __future__ import annotations

"""HighlightZone: the set of fretboard positions a quiz draws from."""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set, Tuple

from ..theory.note import Note


_POSITION_RE = re.compile(r"^s(\d+)f(\d+)$")

MAX_STRING = 6
MAX_FRET = 24


@dataclass(frozen=True, order=True)
class NotePosition:
    string: int
    fret: int

    @property
    def position_id(self) -> str:
        return f"s{self.string}f{self.fret}"


def parse_position_id(position_id: str) -> Optional[NotePosition]:
    m = _POSITION_RE.match(position_id)
    if not m:
        return None
    return NotePosition(int(m.group(1)), int(m.group(2)))


def _is_valid(string: int, fret: int) -> bool:
    return 1 <= string <= MAX_STRING and 0 <= fret <= MAX_FRET


class HighlightZone:
    """Unordered set of positions; out-of-bounds additions are rejected."""

    def __init__(self, name: Optional[str] = None, positions: Iterable[Tuple[int, int]] = ()) -> None:
        self.name = name
        self._positions: Set[NotePosition] = set()
        for string, fret in positions:
            self.add_note(string, fret)

    @classmethod
    def from_ranges(cls, strings: Iterable[int], fret_start: int, fret_end: int, name: Optional[str] = None) -> "HighlightZone":
        zone = cls(name)
        for s in strings:
            for f in range(fret_start, fret_end + 1):
                zone.add_note(s, f)
        return zone

    def add_note(self, string: int, fret: int) -> bool:
        if not _is_valid(string, fret):
            return False
        pos = NotePosition(string, fret)
        if pos in self._positions:
            return False
        self._positions.add(pos)
        return True

    def add_from_note(self, note: Note) -> bool:
        return self.add_note(note.string, note.fret)

    def remove_note(self, string: int, fret: int) -> bool:
        pos = NotePosition(string, fret)
        if pos not in self._positions:
            return False
        self._positions.discard(pos)
        return True

    def contains_note(self, string: int, fret: int) -> bool:
        return NotePosition(string, fret) in self._positions

    def get_all_notes(self) -> List[NotePosition]:
        """Positions sorted by string, then fret."""
        return sorted(self._positions)

    def position_ids(self) -> List[str]:
        return [p.position_id for p in self.get_all_notes()]

    def size(self) -> int:
        return len(self._positions)

    def is_empty(self) -> bool:
        return not self._positions

    def clear(self) -> None:
        self._positions.clear()

    def __len__(self) -> int:
        return len(self._positions)

    def __repr__(self) -> str:
        return f"HighlightZone(name={self.name!r}, size={self.size()})"
