from __future__ import annotations

"""Analytics configuration (hyperparameters) using Pydantic."""

from pydantic import BaseModel, Field


class AnalyticsConfig(BaseModel):
    """Hyperparameters for mastery tables.

    - alpha: answer-time penalty scale (>0)
    - time_ref_s: reference answer time in seconds (>0)
    """

    alpha: float = Field(0.5, gt=0)
    time_ref_s: float = Field(3.0, gt=0)
