from celery import Celery
from finassist.core.settings import get_settings

settings = get_settings()

celery_app = Celery(
    "finassist",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["finassist.tasks.message_tasks"]
)

# One inbound message makes at most two backend calls plus a few store writes
_message_time_limit = int(settings.backend_timeout_s * 2 + settings.store_timeout_s * 3)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_time_limit=_message_time_limit,
    result_expires=3600,
)
