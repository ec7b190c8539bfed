from __future__ import annotations

"""Per-position mastery tables built from a tracker."""

from typing import Optional

import numpy as np
import pandas as pd

from ..quiz.progressive import FRETS_PER_STRING, STRING_NOTES, STRING_PROGRESSION, ProgressiveMasteryTracker
from .config import AnalyticsConfig


COLUMNS = ["string", "fret", "pitch_class", "unlocked", "attempts", "correct", "n_times", "time_sum_s"]


def mastery_frame(tracker: ProgressiveMasteryTracker) -> pd.DataFrame:
    """One row per (string, fret) with raw counters, learning order first."""
    rows = []
    for s in STRING_PROGRESSION:
        for f in range(FRETS_PER_STRING):
            perf = tracker.performance_data(s, f)
            rows.append(
                (
                    s,
                    f,
                    STRING_NOTES[s][f],
                    tracker.is_position_unlocked(s, f),
                    perf.attempts,
                    perf.correct,
                    len(perf.answer_times),
                    float(sum(perf.answer_times)),
                )
            )
    df = pd.DataFrame(rows, columns=COLUMNS)
    df["string"] = df["string"].astype("UInt8")
    df["fret"] = df["fret"].astype("UInt8")
    df["pitch_class"] = df["pitch_class"].astype("category")
    return df


def compute_metrics(df: pd.DataFrame, cfg: Optional[AnalyticsConfig] = None) -> pd.DataFrame:
    """Add accuracy, mean answer time, a time factor and a composite mark.

    Returns a copy with added columns:
    - acc (0..1), avg_time_s (NaN without samples), time_factor, mark
    """
    cfg = cfg or AnalyticsConfig()
    out = df.copy()
    attempts = out["attempts"].to_numpy(dtype="float64")
    correct = out["correct"].to_numpy(dtype="float64")
    n_times = out["n_times"].to_numpy(dtype="float64")
    time_sum = out["time_sum_s"].to_numpy(dtype="float64")

    out["acc"] = np.divide(correct, attempts, out=np.zeros_like(correct), where=attempts > 0)
    out["avg_time_s"] = np.divide(time_sum, n_times, out=np.full_like(time_sum, np.nan), where=n_times > 0)

    # exp(-alpha * avg/T_ref); positions without samples get no time credit
    factor = np.exp(-float(cfg.alpha) * (out["avg_time_s"].to_numpy() / float(cfg.time_ref_s)))
    out["time_factor"] = np.nan_to_num(factor, nan=0.0)
    out["mark"] = (out["acc"] * out["time_factor"]).clip(0, 1)
    return out


def string_summary(df: pd.DataFrame) -> pd.DataFrame:
    """Aggregate a metrics frame per string (unlocked positions only)."""
    unlocked = df[df["unlocked"]]
    g = unlocked.groupby("string", sort=False, observed=True)
    out = g.agg(
        unlocked_frets=("fret", "size"),
        attempts=("attempts", "sum"),
        correct=("correct", "sum"),
        mean_mark=("mark", "mean"),
    )
    att = out["attempts"].to_numpy(dtype="float64")
    out["accuracy"] = np.divide(out["correct"].to_numpy(dtype="float64"), att, out=np.zeros_like(att), where=att > 0) * 100
    return out.reset_index()
