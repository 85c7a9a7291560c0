"""
Predictions Module

Race time prediction from run history.
"""

from .formatting import format_duration, format_pace
from .performance_predictor import (
    create_predictor_from_settings,
    fit_power_law,
    FitResult,
    normalize_activity,
    parse_distance_km,
    PerformancePredictor,
    Prediction,
    recency_weight,
    RunPoint,
)

__all__ = [
    "PerformancePredictor",
    "Prediction",
    "FitResult",
    "RunPoint",
    "create_predictor_from_settings",
    "fit_power_law",
    "normalize_activity",
    "parse_distance_km",
    "recency_weight",
    "format_duration",
    "format_pace",
]
