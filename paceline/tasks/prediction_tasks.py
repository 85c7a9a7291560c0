"""
Race Time Prediction Tasks

Runs the performance predictor on activities handed over by the caller.
"""

import logging
from typing import Any, Dict, List, Optional

from ..errors import InvalidInput, PredictionError
from ..predictions import create_predictor_from_settings
from ..predictions.performance_predictor import parse_start_date
from . import app

logger = logging.getLogger(__name__)


@app.task(name="predict_performance", bind=True)
def predict_performance(
    self,
    activities: List[Dict[str, Any]],
    distance_km: float = 5.0,
    now_iso: Optional[str] = None,
    settings: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Predict a race time from a user's run history.

    Args:
        activities: Strava-style activity dicts (type, distance,
            moving_time, elapsed_time, start_date)
        distance_km: Target race distance in km (default 5.0)
        now_iso: Reference time for recency weighting in ISO format
            (default: current UTC time)
        settings: Optional predictor tunables

    Returns:
        Dict containing either the prediction or the error message
    """
    logger.info(
        f"[Task {self.request.id}] Predicting {distance_km}km from "
        f"{len(activities or [])} activities"
    )

    try:
        now = None
        if now_iso:
            now = parse_start_date(now_iso)
            if now is None:
                raise InvalidInput(f"Invalid now_iso: {now_iso}")

        predictor = create_predictor_from_settings(settings)
        prediction = predictor.predict(activities or [], distance_km, now=now)

        logger.info(
            f"[Task {self.request.id}] Prediction complete: "
            f"{prediction.prediction_time} ({prediction.used_points} runs)"
        )

        return {
            "success": True,
            "prediction": prediction.to_dict(),
        }

    except PredictionError as e:
        logger.warning(f"[Task {self.request.id}] Prediction rejected: {e}")
        return {
            "success": False,
            "error": str(e),
            "error_type": type(e).__name__,
        }
    except Exception as e:
        logger.error(
            f"[Task {self.request.id}] Error predicting {distance_km}km: {e}",
            exc_info=True,
        )
        return {
            "success": False,
            "error": str(e),
            "error_type": type(e).__name__,
        }
