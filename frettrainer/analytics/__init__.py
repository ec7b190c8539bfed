from .config import AnalyticsConfig
from .metrics import compute_metrics, mastery_frame, string_summary

__all__ = [
    "AnalyticsConfig",
    "compute_metrics",
    "mastery_frame",
    "string_summary",
]
