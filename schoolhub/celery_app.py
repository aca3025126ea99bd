"""Celery worker and beat for periodic maintenance."""

from datetime import timedelta

from celery import Celery
from kombu import Queue

from schoolhub.config import Settings, settings

PURGE_TASK = "schoolhub.worker.tasks.purge_expired_refresh_tokens"


def beat_schedule(config: Settings) -> dict:
    return {
        "purge-expired-refresh-tokens": {
            "task": PURGE_TASK,
            "schedule": timedelta(minutes=config.REFRESH_TOKEN_SWEEP_MINUTES),
            # A missed sweep is superseded by the next one.
            "options": {"expires": config.REFRESH_TOKEN_SWEEP_MINUTES * 60},
        },
    }


def create_celery_app(config: Settings = settings) -> Celery:
    app = Celery("schoolhub-worker", broker=config.REDIS_URL, backend=config.REDIS_URL)
    app.conf.update(
        task_serializer="json",
        result_serializer="json",
        accept_content=["json"],
        enable_utc=True,
        timezone="UTC",
        task_soft_time_limit=config.CELERY_TASK_SOFT_TIME_LIMIT,
        task_time_limit=config.CELERY_TASK_HARD_TIME_LIMIT,
        task_acks_late=True,
        worker_prefetch_multiplier=1,
        result_expires=timedelta(hours=1),
        task_default_queue=config.CELERY_QUEUE_NAME,
        task_queues=(Queue(config.CELERY_QUEUE_NAME),),
        imports=("schoolhub.worker.tasks",),
        beat_schedule=beat_schedule(config),
        beat_schedule_filename="/tmp/celerybeat-schedule",
    )
    return app


celery_app = create_celery_app()
