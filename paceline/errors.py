"""
Error types shared by the predictor, the Strava client and the API.

Every error carries the HTTP status the API answers with. The message is
shown to the end user verbatim.
"""


class PredictionError(ValueError):
    """Base class for errors that end a prediction request."""

    status_code = 400


class InvalidInput(PredictionError):
    """Target distance is missing, non-numeric or not positive."""

    status_code = 400


class Unauthorized(PredictionError):
    """No user identity, or no usable Strava token for it."""

    status_code = 401


class InsufficientData(PredictionError):
    """Fewer usable runs than the model needs."""

    status_code = 400


class ModelFitFailed(PredictionError):
    """The regression is degenerate for the given runs."""

    status_code = 500


class StravaError(RuntimeError):
    """Strava answered with an unexpected status."""

    status_code = 502
