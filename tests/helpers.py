from __future__ import annotations

"""Shared fixtures for the unittest suite."""

from frettrainer.theory.fretboard import Fretboard
from frettrainer.theory.note import Note

FRETBOARD = Fretboard()


def note_at(string: int, fret: int) -> Note:
    note = FRETBOARD.get_note_at(string, fret)
    assert note is not None
    return note
