"""
HTTP API for race time predictions.

GET /api/predict?distance_km=5.0 with an X-User-Id header set by the
auth gateway.
"""

import logging
import os
from typing import Any, Callable, Dict, List, Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Header, Query
from fastapi.responses import JSONResponse

from .errors import PredictionError, StravaError, Unauthorized
from .predictions import parse_distance_km, PerformancePredictor
from .strava import load_user_activities

load_dotenv()

logging.basicConfig(
    level=os.getenv("PACELINE_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

ActivityLoader = Callable[[str], List[Dict[str, Any]]]

app = FastAPI(title="Paceline")


def get_activity_loader() -> ActivityLoader:
    return load_user_activities


def get_predictor() -> PerformancePredictor:
    return PerformancePredictor()


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.get("/health")
def health() -> Dict[str, bool]:
    return {"ok": True}


@app.get("/api/predict")
def predict_performance(
    distance_km: str = Query("5.0"),
    x_user_id: Optional[str] = Header(None),
    load_activities: ActivityLoader = Depends(get_activity_loader),
    predictor: PerformancePredictor = Depends(get_predictor),
):
    """Predict the user's finishing time for distance_km."""
    try:
        if not x_user_id:
            raise Unauthorized("Unauthorized")
        target_km = parse_distance_km(distance_km)

        activities = load_activities(x_user_id)
        prediction = predictor.predict(activities, target_km)
        return prediction.to_dict()

    except (PredictionError, StravaError) as e:
        logger.info(f"Prediction for user {x_user_id} failed: {e}")
        return error_response(str(e), e.status_code)
    except Exception as e:
        logger.error(f"Unexpected error predicting for user {x_user_id}: {e}", exc_info=True)
        return error_response("Server error", 500)
