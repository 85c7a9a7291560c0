"""
Celery Application Configuration

Broker and result backend default to the same Redis instance. Set
CELERY_RESULT_BACKEND to keep results somewhere else.
"""

from celery import Celery
import os

redis_url = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
result_backend = os.getenv('CELERY_RESULT_BACKEND', redis_url)

app = Celery('paceline', broker=redis_url, backend=result_backend)

app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,  # 5 minutes max per task
    task_default_queue=os.getenv('PACELINE_QUEUE', 'predictions'),
    result_expires=3600,  # predictions are consumed right away
)

app.autodiscover_tasks(['paceline.tasks'])

__all__ = ['app']
