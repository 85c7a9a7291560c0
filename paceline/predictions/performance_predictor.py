"""
Performance Predictor

Predicts a race finishing time from a runner's recent history by fitting
a power law, time = a * distance^b, in log-log space. The fit is a
weighted least squares regression where each run is weighted by an
exponential recency decay, so recent form dominates.

Before fitting, runs are cleaned in three stages:
- normalization (only valid runs with positive distance and time)
- pause filter (too much stopped time hides the real pace)
- outlier filter (paces far from the median are dropped)
"""

import logging
import math
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import numpy as np

from ..errors import InsufficientData, InvalidInput, ModelFitFailed
from .formatting import format_duration, format_pace

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86_400


@dataclass(frozen=True)
class RunPoint:
    """A single cleaned run"""

    distance_m: float
    moving_time_s: float
    start_date: datetime
    elapsed_time_s: Optional[float] = None

    @property
    def pace_s_per_m(self) -> float:
        return self.moving_time_s / self.distance_m


@dataclass(frozen=True)
class FitResult:
    """Fitted power law parameters"""

    log_a: float  # intercept in log-log space
    b: float  # fatigue exponent
    rmse_log: float  # weighted RMS residual in log space


@dataclass(frozen=True)
class Prediction:
    """Predicted finishing time for a target distance"""

    distance_km: float
    prediction_seconds: float
    prediction_time: str
    pace_per_km: str
    confidence_low_seconds: float
    confidence_high_seconds: float
    confidence_low_time: str
    confidence_high_time: str
    model: FitResult
    used_points: int

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the JSON shape returned by the API."""
        return {
            "distance_km": self.distance_km,
            "prediction_seconds": self.prediction_seconds,
            "prediction_time": self.prediction_time,
            "pace_per_km": self.pace_per_km,
            "confidence_low_time": self.confidence_low_time,
            "confidence_high_time": self.confidence_high_time,
            "model": asdict(self.model),
            "used_points": self.used_points,
        }


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def parse_distance_km(value: Any) -> float:
    """
    Parse a target distance in km.

    Raises:
        InvalidInput: value is not a finite positive number, or is too
            large to express in metres
    """
    distance_km = _to_float(value)
    if distance_km is None or distance_km <= 0:
        raise InvalidInput("Invalid distance_km")
    if not math.isfinite(distance_km * 1000):
        raise InvalidInput("Invalid distance_km")
    return distance_km


def parse_start_date(value: Any) -> Optional[datetime]:
    """
    Parse an activity start date.

    Accepts datetime instances and ISO 8601 strings (a trailing "Z" is
    read as UTC). Naive values are taken as UTC.

    Returns:
        Timezone-aware datetime, or None if the value can't be parsed
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalize_activity(activity: Dict[str, Any]) -> Optional[RunPoint]:
    """
    Convert a raw Strava-style activity into a RunPoint.

    Expected keys: type (or sport_type), distance (m), moving_time (s),
    elapsed_time (s, optional), start_date (ISO 8601).

    Returns:
        RunPoint, or None if the activity is not a usable run
    """
    if not isinstance(activity, dict):
        return None

    activity_type = activity.get("type") or activity.get("sport_type")
    if not isinstance(activity_type, str) or activity_type.lower() != "run":
        return None

    distance = _to_float(activity.get("distance"))
    moving_time = _to_float(activity.get("moving_time"))
    start_date = parse_start_date(activity.get("start_date"))
    if distance is None or moving_time is None or start_date is None:
        return None
    if distance <= 0 or moving_time <= 0:
        return None

    elapsed_time = _to_float(activity.get("elapsed_time"))
    if elapsed_time is not None and elapsed_time <= 0:
        elapsed_time = None

    return RunPoint(
        distance_m=distance,
        moving_time_s=moving_time,
        start_date=start_date,
        elapsed_time_s=elapsed_time,
    )


def recency_weight(
    start_date: datetime, now: datetime, half_life_days: float = 60
) -> float:
    """
    Exponential recency weight with the given half-life.

    Runs dated in the future count as today.
    """
    age_seconds = max(0.0, (now - start_date).total_seconds())
    age_days = age_seconds / SECONDS_PER_DAY
    return 0.5 ** (age_days / half_life_days)


def fit_power_law(
    points: List[RunPoint], now: datetime, half_life_days: float = 60
) -> FitResult:
    """
    Fit log(time) = log(a) + b * log(distance) by weighted least squares.

    The determinant of the normal equations, sw * swxx - swx^2, is
    evaluated as sw * sum(w * (x - x_mean)^2), which is the same quantity
    but exactly zero when every run has the same distance.

    Raises:
        ModelFitFailed: fewer than 2 points, zero total weight or a
            degenerate determinant
    """
    if len(points) < 2:
        raise ModelFitFailed("Model fit failed")

    x = [math.log(p.distance_m) for p in points]
    y = [math.log(p.moving_time_s) for p in points]
    w = [recency_weight(p.start_date, now, half_life_days) for p in points]

    sw = math.fsum(w)
    if sw == 0 or not math.isfinite(sw):
        raise ModelFitFailed("Model fit failed")

    swx = math.fsum(wi * xi for wi, xi in zip(w, x))
    swy = math.fsum(wi * yi for wi, yi in zip(w, y))
    x_mean = swx / sw
    y_mean = swy / sw

    sxx = math.fsum(wi * (xi - x_mean) ** 2 for wi, xi in zip(w, x))
    sxy = math.fsum(
        wi * (xi - x_mean) * (yi - y_mean) for wi, xi, yi in zip(w, x, y)
    )

    det = sw * sxx
    if not math.isfinite(det) or abs(det) < 1e-12:
        raise ModelFitFailed("Model fit failed")

    b = sxy / sxx
    log_a = y_mean - b * x_mean

    sse = math.fsum(
        wi * (yi - (log_a + b * xi)) ** 2 for wi, xi, yi in zip(w, x, y)
    )
    rmse_log = math.sqrt(sse / sw)

    return FitResult(log_a=log_a, b=b, rmse_log=rmse_log)


class PerformancePredictor:
    """
    Predicts race times from run history using a recency-weighted
    power law fit.

    Besides dropping runs with non-positive distance, cleaning also
    ignores runs of MIN_DISTANCE_M (800 m) or less, such as strides and
    warmups. Pass min_distance_m=0 to keep every positive distance.
    """

    # Weight halves every 60 days
    HALF_LIFE_DAYS = 60.0

    # Minimum runs required at every cleaning stage
    MIN_POINTS = 4

    # moving / elapsed below this means too much pausing
    MIN_MOVE_ELAPSED_RATIO = 0.8

    # Accepted pace band around the median pace
    OUTLIER_LOW = 0.5
    OUTLIER_HIGH = 2.0

    # Runs this short or shorter are ignored (strides, warmups)
    MIN_DISTANCE_M = 800.0

    def __init__(
        self,
        half_life_days: float = HALF_LIFE_DAYS,
        min_points: int = MIN_POINTS,
        min_move_elapsed_ratio: float = MIN_MOVE_ELAPSED_RATIO,
        outlier_low: float = OUTLIER_LOW,
        outlier_high: float = OUTLIER_HIGH,
        min_distance_m: float = MIN_DISTANCE_M,
    ):
        """
        Initialize predictor with its tunables.

        Args:
            half_life_days: Recency weight half-life in days
            min_points: Runs required after each filter stage
            min_move_elapsed_ratio: Pause filter threshold (0.8 = 80% moving)
            outlier_low: Lower pace bound as a multiple of the median pace
            outlier_high: Upper pace bound as a multiple of the median pace
            min_distance_m: Runs at or below this distance are ignored
        """
        self.half_life_days = half_life_days
        self.min_points = min_points
        self.min_move_elapsed_ratio = min_move_elapsed_ratio
        self.outlier_low = outlier_low
        self.outlier_high = outlier_high
        self.min_distance_m = min_distance_m

    def predict(
        self,
        activities: Iterable[Dict[str, Any]],
        distance_km: float,
        now: Optional[datetime] = None,
    ) -> Prediction:
        """
        Predict the finishing time for a target distance.

        Args:
            activities: Raw activity dicts (Strava activity shape)
            distance_km: Target race distance in km
            now: Reference time for recency weights (default: current UTC)

        Returns:
            Prediction with confidence band and fit parameters

        Raises:
            InvalidInput: distance_km is not a positive finite number
            InsufficientData: too few runs survive a cleaning stage
            ModelFitFailed: the regression is degenerate
        """
        target_km = parse_distance_km(distance_km)

        if now is None:
            now = datetime.now(timezone.utc)
        elif now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        points = self.clean(activities)
        fit = fit_power_law(points, now, self.half_life_days)
        logger.info(
            f"Fitted power law on {len(points)} runs: "
            f"log_a={fit.log_a:.4f}, b={fit.b:.4f}, rmse_log={fit.rmse_log:.4f}"
        )

        target_m = target_km * 1000
        try:
            predicted = math.exp(fit.log_a + fit.b * math.log(target_m))
        except OverflowError as e:
            raise ModelFitFailed("Model fit failed") from e
        if not math.isfinite(predicted) or predicted <= 0:
            raise ModelFitFailed("Model fit failed")

        # exp(log(p) - r) can land an ulp above p when r is ~0
        low = min(math.exp(math.log(predicted) - fit.rmse_log), predicted)
        high = max(math.exp(math.log(predicted) + fit.rmse_log), predicted)

        return Prediction(
            distance_km=target_km,
            prediction_seconds=round(predicted, 1),
            prediction_time=format_duration(predicted),
            pace_per_km=format_pace(predicted, target_km),
            confidence_low_seconds=round(low, 1),
            confidence_high_seconds=round(high, 1),
            confidence_low_time=format_duration(low),
            confidence_high_time=format_duration(high),
            model=fit,
            used_points=len(points),
        )

    def clean(self, activities: Iterable[Dict[str, Any]]) -> List[RunPoint]:
        """Normalize activities and apply the pause and outlier filters."""
        points = [
            p
            for p in (normalize_activity(a) for a in activities)
            if p is not None and p.distance_m > self.min_distance_m
        ]
        logger.debug(f"{len(points)} valid runs after normalization")
        if len(points) < self.min_points:
            raise InsufficientData(f"Need at least {self.min_points} valid runs")

        points = self._filter_pauses(points)
        logger.debug(f"{len(points)} runs after pause filter")
        if len(points) < self.min_points:
            raise InsufficientData("Not enough clean runs after filtering")

        points = self._filter_outliers(points)
        logger.debug(f"{len(points)} runs after outlier filter")
        if len(points) < self.min_points:
            raise InsufficientData(
                "Too many outliers removed; collect a few more steady runs"
            )

        return points

    def _filter_pauses(self, points: List[RunPoint]) -> List[RunPoint]:
        """Drop runs where too much of the elapsed time was stopped."""
        return [
            p
            for p in points
            if p.elapsed_time_s is None
            or p.moving_time_s / p.elapsed_time_s >= self.min_move_elapsed_ratio
        ]

    def _filter_outliers(self, points: List[RunPoint]) -> List[RunPoint]:
        """Drop runs whose pace is far from the median pace."""
        paces = [p.pace_s_per_m for p in points]
        median = float(np.median(paces))
        low = self.outlier_low * median
        high = self.outlier_high * median
        return [p for p, pace in zip(points, paces) if low <= pace <= high]


def _setting(
    settings: Dict[str, Any], key: str, default: float, allow_zero: bool = False
) -> float:
    value = settings.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInput(f"Invalid setting {key}: {value!r}")
    if not math.isfinite(value) or value < 0 or (value == 0 and not allow_zero):
        raise InvalidInput(f"Invalid setting {key}: {value!r}")
    return value


def create_predictor_from_settings(
    settings: Optional[Dict[str, Any]],
) -> PerformancePredictor:
    """
    Create a predictor from a settings mapping.

    Every tunable must be a finite positive number. min_distance_m may
    also be 0, which disables the short run cut.

    Args:
        settings: Optional tunables keyed by constructor argument name

    Returns:
        Configured PerformancePredictor

    Raises:
        InvalidInput: a tunable is not a number, is out of range, or
            outlier_low is above outlier_high
    """
    if not settings:
        return PerformancePredictor()

    min_points = _setting(settings, "min_points", PerformancePredictor.MIN_POINTS)
    if min_points != int(min_points):
        raise InvalidInput(f"Invalid setting min_points: {min_points!r}")

    outlier_low = _setting(settings, "outlier_low", PerformancePredictor.OUTLIER_LOW)
    outlier_high = _setting(
        settings, "outlier_high", PerformancePredictor.OUTLIER_HIGH
    )
    if outlier_low > outlier_high:
        raise InvalidInput("Invalid settings: outlier_low is above outlier_high")

    return PerformancePredictor(
        half_life_days=_setting(
            settings, "half_life_days", PerformancePredictor.HALF_LIFE_DAYS
        ),
        min_points=int(min_points),
        min_move_elapsed_ratio=_setting(
            settings,
            "min_move_elapsed_ratio",
            PerformancePredictor.MIN_MOVE_ELAPSED_RATIO,
        ),
        outlier_low=outlier_low,
        outlier_high=outlier_high,
        min_distance_m=_setting(
            settings,
            "min_distance_m",
            PerformancePredictor.MIN_DISTANCE_M,
            allow_zero=True,
        ),
    )
