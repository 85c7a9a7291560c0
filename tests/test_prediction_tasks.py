"""
Tests for the prediction Celery task

Tasks are called directly, which runs them synchronously in-process.
"""

from unittest.mock import patch

from paceline.tasks.prediction_tasks import predict_performance


NOW_ISO = "2026-01-15T12:00:00Z"

STEADY_RUNS = [
    {"type": "Run", "distance": 3000, "moving_time": 900, "start_date": "2026-01-14T07:00:00Z"},
    {"type": "Run", "distance": 4000, "moving_time": 1200, "start_date": "2026-01-10T07:00:00Z"},
    {"type": "Run", "distance": 5000, "moving_time": 1500, "start_date": "2026-01-06T07:00:00Z"},
    {"type": "Run", "distance": 6000, "moving_time": 1800, "start_date": "2026-01-02T07:00:00Z"},
    {"type": "Run", "distance": 8000, "moving_time": 2400, "start_date": "2025-12-28T07:00:00Z"},
    {"type": "Ride", "distance": 40000, "moving_time": 4800, "start_date": "2025-12-27T07:00:00Z"},
]


class TestPredictPerformanceTask:
    """Tests for predict_performance"""

    def test_successful_prediction(self):
        result = predict_performance(STEADY_RUNS, 5.0, now_iso=NOW_ISO)

        assert result["success"] is True
        prediction = result["prediction"]
        assert prediction["prediction_time"] == "25:00"
        assert prediction["pace_per_km"] == "5:00/km"
        assert prediction["used_points"] == 5
        assert set(prediction["model"]) == {"log_a", "b", "rmse_log"}

    def test_default_distance_is_5k(self):
        result = predict_performance(STEADY_RUNS, now_iso=NOW_ISO)
        assert result["prediction"]["distance_km"] == 5.0

    def test_same_input_same_output(self):
        first = predict_performance(STEADY_RUNS, 10.0, now_iso=NOW_ISO)
        second = predict_performance(STEADY_RUNS, 10.0, now_iso=NOW_ISO)
        assert first == second

    def test_insufficient_data(self):
        result = predict_performance(STEADY_RUNS[:3], 5.0, now_iso=NOW_ISO)
        assert result == {
            "success": False,
            "error": "Need at least 4 valid runs",
            "error_type": "InsufficientData",
        }

    def test_empty_activities(self):
        result = predict_performance(None, 5.0, now_iso=NOW_ISO)
        assert result["success"] is False
        assert result["error_type"] == "InsufficientData"

    def test_invalid_distance(self):
        result = predict_performance(STEADY_RUNS, -1, now_iso=NOW_ISO)
        assert result["success"] is False
        assert result["error"] == "Invalid distance_km"

    def test_invalid_now(self):
        result = predict_performance(STEADY_RUNS, 5.0, now_iso="not a date")
        assert result["success"] is False
        assert result["error_type"] == "InvalidInput"

    def test_settings_are_applied(self):
        result = predict_performance(
            STEADY_RUNS[:3], 5.0, now_iso=NOW_ISO, settings={"min_points": 3}
        )
        assert result["success"] is True
        assert result["prediction"]["used_points"] == 3

    def test_degenerate_fit(self):
        runs = [dict(run, distance=5000, moving_time=1500) for run in STEADY_RUNS[:5]]
        result = predict_performance(runs, 5.0, now_iso=NOW_ISO)
        assert result["success"] is False
        assert result["error_type"] == "ModelFitFailed"

    def test_zero_half_life_setting(self):
        result = predict_performance(
            STEADY_RUNS, 5.0, now_iso=NOW_ISO, settings={"half_life_days": 0}
        )
        assert result["success"] is False
        assert result["error_type"] == "InvalidInput"
        assert "half_life_days" in result["error"]

    def test_string_half_life_setting(self):
        result = predict_performance(
            STEADY_RUNS, 5.0, now_iso=NOW_ISO, settings={"half_life_days": "60"}
        )
        assert result["success"] is False
        assert result["error_type"] == "InvalidInput"

    def test_unexpected_error_returns_error_dict(self):
        with patch(
            "paceline.tasks.prediction_tasks.create_predictor_from_settings",
            side_effect=RuntimeError("boom"),
        ):
            result = predict_performance(STEADY_RUNS, 5.0, now_iso=NOW_ISO)
        assert result == {"success": False, "error": "boom", "error_type": "RuntimeError"}


class TestCeleryApp:
    """Tests for the Celery app wiring"""

    def test_tasks_use_shared_app(self):
        from paceline import get_celery_app
        from paceline.tasks import app

        assert get_celery_app() is app
        assert "predict_performance" in app.tasks
