"""
Paceline Worker

This package provides:
- Race time predictions from recent run history
- A Celery task wrapping the predictor
- A Strava activity client
- The HTTP prediction endpoint
"""

# Delay Celery import to allow using the predictor without celery configured
def get_celery_app():
    from .celery_app import app
    return app

# Only export get_celery_app function, not the app directly
__all__ = ['get_celery_app']
