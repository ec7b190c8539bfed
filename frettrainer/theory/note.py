from __future__ import annotations

"""Immutable note value bound to a fretboard position."""

from dataclasses import dataclass, field

from .keys import PITCH_CLASS_NAMES, normalize_pitch_class, pitch_class_index, to_flat_name


@dataclass(frozen=True)
class Note:
    """A sounding pitch at a (string, fret) coordinate.

    Strings are numbered 1 (high E) to 6 (low E) in standard tuning.
    """

    pitch_class: str
    octave: int
    string: int
    fret: int
    midi_number: int = field(init=False)

    def __post_init__(self) -> None:
        pc = normalize_pitch_class(self.pitch_class)
        object.__setattr__(self, "pitch_class", pc)
        object.__setattr__(self, "midi_number", (self.octave + 1) * 12 + pitch_class_index(pc))

    @classmethod
    def from_midi(cls, midi_number: int, string: int, fret: int) -> "Note":
        octave = midi_number // 12 - 1
        return cls(PITCH_CLASS_NAMES[midi_number % 12], octave, string, fret)

    @property
    def position_id(self) -> str:
        return f"s{self.string}f{self.fret}"

    def display_name(self, mode: str = "sharps") -> str:
        if mode == "flats":
            return to_flat_name(self.pitch_class)
        return self.pitch_class

    def full_name(self, mode: str = "sharps") -> str:
        return f"{self.display_name(mode)}{self.octave}"

    def is_same_position(self, other: "Note") -> bool:
        return self.string == other.string and self.fret == other.fret

    def is_same_pitch(self, other: "Note") -> bool:
        return self.midi_number == other.midi_number

    def __str__(self) -> str:
        return f"{self.full_name()} (string {self.string}, fret {self.fret})"
