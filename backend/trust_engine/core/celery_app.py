"""
Celery application configuration for the Trust Engine.

Handles background task scheduling for:
- Suspension expiry sweep (every 15 minutes)
"""

from celery import Celery
from celery.schedules import crontab

from trust_engine.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "trust_engine",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["trust_engine.tasks.suspension_tasks"],
)

beat_schedule: dict = {}
if settings.suspension_sweep_enabled:
    beat_schedule["expire-suspensions"] = {
        "task": "trust_engine.tasks.suspension_tasks.expire_suspensions",
        "schedule": crontab(minute="*/15"),
    }

celery_app.conf.update(
    # Task serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    # Timezone
    timezone="UTC",
    enable_utc=True,
    # Task execution
    task_track_started=True,
    task_time_limit=300,  # 5 minute hard limit
    task_soft_time_limit=240,  # 4 minute soft limit
    # Result backend
    result_expires=3600,
    # Worker
    worker_prefetch_multiplier=1,
    # Beat schedule for periodic tasks
    beat_schedule=beat_schedule,
)
