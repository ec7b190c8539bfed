from __future__ import annotations

"""Pitch-class names and enharmonic handling.

Sharps are the canonical spelling everywhere in the package; flat spellings
are accepted on input and normalized on the way in.
"""

from typing import Dict, List


PITCH_CLASS_NAMES: List[str] = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
FLAT_NAMES: List[str] = ["C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B"]

NATURAL_NOTES: List[str] = ["C", "D", "E", "F", "G", "A", "B"]
ACCIDENTAL_NOTES: List[str] = ["C#", "D#", "F#", "G#", "A#"]

DISPLAY_MODES = {"sharps", "flats", "both"}

_SHARP_TO_FLAT: Dict[str, str] = dict(zip(PITCH_CLASS_NAMES, FLAT_NAMES))
_FLAT_TO_SHARP: Dict[str, str] = dict(zip(FLAT_NAMES, PITCH_CLASS_NAMES))


def normalize_pitch_class(name: str) -> str:
    """Map a sharp, flat or natural spelling to its canonical sharp name.

    Args:
        name: Pitch name like "C", "C#" or "Db".

    Returns:
        One of PITCH_CLASS_NAMES.

    Raises:
        ValueError: if the name is not a defined spelling.
    """
    if name in _SHARP_TO_FLAT:
        return name
    if name in _FLAT_TO_SHARP:
        return _FLAT_TO_SHARP[name]
    raise ValueError(f"Unsupported note name: {name}")


def to_flat_name(pitch_class: str) -> str:
    """Return the flat spelling of a canonical pitch class (naturals unchanged)."""
    norm = normalize_pitch_class(pitch_class)
    return _SHARP_TO_FLAT[norm]


def is_natural(pitch_class: str) -> bool:
    return normalize_pitch_class(pitch_class) in NATURAL_NOTES


def pitch_class_index(pitch_class: str) -> int:
    return PITCH_CLASS_NAMES.index(normalize_pitch_class(pitch_class))


def pitch_class_from_index(index: int) -> str:
    return PITCH_CLASS_NAMES[index % 12]


def note_name_to_midi(name: str, octave: int) -> int:
    """Convert note name and octave to MIDI number (C4 = 60)."""
    midi = (octave + 1) * 12 + pitch_class_index(name)
    if midi < 0 or midi > 127:
        raise ValueError("MIDI out of range")
    return midi
