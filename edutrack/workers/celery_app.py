"""Celery application configuration."""

from celery import Celery

from edutrack.core.config import settings

celery_app = Celery(
    "edutrack",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "edutrack.workers.notification_tasks",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=600,
    worker_prefetch_multiplier=1,
)

# Schedule periodic tasks
celery_app.conf.beat_schedule = {
    "purge-expired-notifications": {
        "task": "edutrack.workers.notification_tasks.purge_expired_notifications",
        "schedule": float(settings.notification_purge_interval_seconds),
    },
}
