"""Celery application configuration."""

from celery import Celery

from housespend.config import get_settings

settings = get_settings()

app = Celery(
    "housespend",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["housespend.tasks.store_name_prefill"],
)

app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    # Pre-fill is best effort; never let it outlive a worker shutdown
    task_time_limit=120,
    task_soft_time_limit=90,
)
