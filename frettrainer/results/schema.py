from __future__ import annotations

"""Pydantic models for the persisted progress snapshot (schema 2)."""

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..config.settings import ProgressiveConfig


SCHEMA_VERSION = 2


class PerformanceEntry(BaseModel):
    attempts: int = Field(0, ge=0)
    correct: int = Field(0, ge=0)
    answer_times: List[float] = Field(default_factory=list)
    last_attempt_time: float = Field(0.0, ge=0)

    @field_validator("answer_times")
    @classmethod
    def _non_negative_times(cls, v: List[float]) -> List[float]:
        if any(t < 0 for t in v):
            raise ValueError("answer_times must be non-negative")
        return v

    @model_validator(mode="after")
    def _correct_le_attempts(self) -> "PerformanceEntry":
        if self.correct > self.attempts:
            raise ValueError("correct must be <= attempts")
        return self


def _check_string_key(key: str) -> None:
    if not key.isdigit() or not (1 <= int(key) <= 6):
        raise ValueError(f"string key must be 1..6, got {key!r}")


class ProgressSnapshot(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    schema_version: int = Field(SCHEMA_VERSION, alias="schema")
    config: ProgressiveConfig = Field(default_factory=ProgressiveConfig)
    performance: Dict[str, Dict[str, PerformanceEntry]] = Field(default_factory=dict)
    unlocked_frets_per_string: Dict[str, int] = Field(default_factory=dict)
    current_string_index: int = Field(0, ge=0, le=5)

    @field_validator("schema_version")
    @classmethod
    def _only_current(cls, v: int) -> int:
        if v != SCHEMA_VERSION:
            raise ValueError(f"expected schema {SCHEMA_VERSION}, got {v}")
        return v

    @field_validator("performance")
    @classmethod
    def _position_keys(cls, v: Dict[str, Dict[str, PerformanceEntry]]) -> Dict[str, Dict[str, PerformanceEntry]]:
        for s_key, frets in v.items():
            _check_string_key(s_key)
            for f_key in frets:
                if not f_key.isdigit() or int(f_key) > 11:
                    raise ValueError(f"fret key must be 0..11, got {f_key!r}")
        return v

    @field_validator("unlocked_frets_per_string")
    @classmethod
    def _unlocked_range(cls, v: Dict[str, int]) -> Dict[str, int]:
        for s_key, n in v.items():
            _check_string_key(s_key)
            if not (0 <= n <= 12):
                raise ValueError(f"unlocked frets must be 0..12, got {n}")
        return v
