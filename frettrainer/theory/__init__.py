"""Musical data model and instrument geometry used by the quiz engine."""

from .keys import PITCH_CLASS_NAMES, NATURAL_NOTES, ACCIDENTAL_NOTES, normalize_pitch_class  # noqa: F401
from .note import Note  # noqa: F401
from .fretboard import Fretboard, FretboardConfig, TUNINGS  # noqa: F401
