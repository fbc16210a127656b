"""Celery application configuration with feed queue and Beat schedule."""
from celery import Celery
from celery.schedules import crontab

from instafeed.config import get_settings

settings = get_settings()

celery_app = Celery(
    "instafeed",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_routes={
        "instafeed.tasks.sync_tasks.*": {"queue": "feeds"},
    },
    task_default_retry_delay=60,
    task_max_retries=3,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    result_expires=3600,
)

celery_app.conf.beat_schedule = {
    "sync-all-feeds": {
        "task": "instafeed.tasks.sync_tasks.sync_all_feeds",
        "schedule": 3600.0,
    },
    "refresh-instagram-tokens": {
        "task": "instafeed.tasks.sync_tasks.refresh_instagram_tokens",
        "schedule": crontab(hour=3, minute=0),
    },
}

celery_app.autodiscover_tasks(["instafeed.tasks.sync_tasks"])
