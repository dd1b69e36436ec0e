"""Celery configuration"""

from celery import Celery
from celery.schedules import crontab

from ..config import settings

# Initialize Celery
celery_app = Celery(
    "multirec_tasks",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND
)

# Celery configuration
celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
    task_track_started=True,
    task_time_limit=3600,  # 1 hour
    task_soft_time_limit=3000,  # 50 minutes
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,
)

# Periodic tasks schedule
celery_app.conf.beat_schedule = {
    'refresh-popularity-scores': {
        'task': 'multirec.tasks.celery_tasks.refresh_popularity_scores',
        'schedule': crontab(hour=3, minute=0),  # Run at 3 AM daily
    },
}
