"""
Paceline Worker Tasks Package
"""

from .. import get_celery_app

app = get_celery_app()

# Import all tasks to ensure they're registered with Celery
from .prediction_tasks import predict_performance  # noqa: E402

__all__ = [
    "app",
    "predict_performance",
]
