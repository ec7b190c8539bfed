from __future__ import annotations

"""Curated quiz presets.

Presets help users select a sensible zone and pacing quickly without many
flags. Each one names a string set, a fret window and flow overrides.
"""

from typing import Any, Dict, Optional

from ..zones.zone import HighlightZone


QUIZ_PRESETS: Dict[str, Dict[str, Any]] = {
    "beginner": {
        "strings": [6, 5],
        "fret_start": 0,
        "fret_end": 5,
        "flow": {
            "auto_advance_delay_ms": 1500,
            "quiz": {"total_questions": 10, "max_attempts": 3},
            "generator": {"pitch_class_filter": "natural"},
        },
    },
    "default": {
        "strings": [6, 5, 4],
        "fret_start": 0,
        "fret_end": 12,
        "flow": {
            "auto_advance_delay_ms": 1000,
            "quiz": {"total_questions": 20, "max_attempts": 3},
            "generator": {"pitch_class_filter": "sharps"},
        },
    },
    "advanced": {
        "strings": [1, 2, 3, 4, 5, 6],
        "fret_start": 0,
        "fret_end": 12,
        "flow": {
            "auto_advance_delay_ms": 600,
            "quiz": {"total_questions": 40, "max_attempts": 2},
            "generator": {"pitch_class_filter": "both", "display_preference": "both"},
        },
    },
    "first_position": {
        "strings": [1, 2, 3, 4, 5, 6],
        "fret_start": 0,
        "fret_end": 4,
        "flow": {
            "quiz": {"total_questions": 15},
            "generator": {"pitch_class_filter": "sharps"},
        },
    },
}


def list_presets() -> Dict[str, Dict[str, Any]]:
    return dict(QUIZ_PRESETS)


def get_preset(name: str) -> Optional[Dict[str, Any]]:
    preset = QUIZ_PRESETS.get(name)
    return dict(preset) if preset is not None else None


def has_preset(name: str) -> bool:
    return name in QUIZ_PRESETS


def zone_for_preset(name: str) -> Optional[HighlightZone]:
    preset = QUIZ_PRESETS.get(name)
    if preset is None:
        return None
    return HighlightZone.from_ranges(preset["strings"], preset["fret_start"], preset["fret_end"], name=name)
