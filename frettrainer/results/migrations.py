from __future__ import annotations

"""One-time upgrades of older progress snapshots.

Schema 1 files tracked the low E string only:

{
  "config": {...},
  "performance": {"0": {attempts, correct, answer_times, last_attempt_time}, ...},
  "unlocked_frets": 3
}

Files written by the browser version used camelCase keys (answerTimes,
unlockedFrets, ...); those are accepted here as well.
"""

from typing import Any, Dict

from ..config.settings import ProgressiveConfig
from .schema import SCHEMA_VERSION


LEGACY_STRING = "6"

_KEY_RENAMES = {
    "answerTimes": "answer_times",
    "lastAttemptTime": "last_attempt_time",
    "unlockedFrets": "unlocked_frets",
    "unlockedFretsPerString": "unlocked_frets_per_string",
    "currentStringIndex": "current_string_index",
    "accuracyThreshold": "accuracy_threshold",
    "averageTimeThreshold": "average_time_threshold",
    "maxAnswerTimeToCount": "max_answer_time_to_count",
    "minAttemptsToUnlock": "min_attempts_to_unlock",
    "nextNoteDelay": "next_note_delay_ms",
    "lowAccuracyWeight": "low_accuracy_weight",
    "unlearnedNoteWeight": "unlearned_note_weight",
    "strugglingAccuracyThreshold": "struggling_accuracy_threshold",
    "minAttemptsForLearned": "min_attempts_for_learned",
    "currentStringProbability": "current_string_probability",
}


def _snake_keys(obj: Dict[str, Any]) -> Dict[str, Any]:
    return {_KEY_RENAMES.get(k, k): v for k, v in obj.items()}


def _is_flat_ledger(performance: Dict[str, Any]) -> bool:
    return any(isinstance(v, dict) and "attempts" in v for v in performance.values())


def needs_migration(data: Dict[str, Any]) -> bool:
    return int(data.get("schema", 0) or 0) < SCHEMA_VERSION


def migrate_snapshot(data: Dict[str, Any]) -> Dict[str, Any]:
    """Return a schema-2 snapshot built from `data`.

    Schema-2 input is returned unchanged. Every legacy ledger entry is kept
    under the low E string, and the single unlocked-fret count becomes that
    string's count.
    """
    if not needs_migration(data):
        return data
    src = _snake_keys(dict(data))
    performance = dict(src.get("performance") or {})

    if _is_flat_ledger(performance):
        per_string = {LEGACY_STRING: {str(f): _snake_keys(p) for f, p in performance.items()}}
    else:
        per_string = {
            str(s): {str(f): _snake_keys(p) for f, p in (frets or {}).items()}
            for s, frets in performance.items()
        }

    unlocked = src.get("unlocked_frets_per_string")
    if unlocked:
        unlocked = {str(s): int(n) for s, n in unlocked.items()}
    else:
        unlocked = {LEGACY_STRING: int(src.get("unlocked_frets", 1) or 1)}

    return {
        "schema": SCHEMA_VERSION,
        "config": {k: v for k, v in _snake_keys(dict(src.get("config") or {})).items() if k in ProgressiveConfig.model_fields},
        "performance": per_string,
        "unlocked_frets_per_string": unlocked,
        "current_string_index": int(src.get("current_string_index", 0) or 0),
    }
