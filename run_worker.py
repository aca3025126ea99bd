#!/usr/bin/env python
"""Start a Celery worker consuming the maintenance queue."""

from schoolhub.celery_app import celery_app
from schoolhub.config import settings
from schoolhub.utils.logger import setup_logging

setup_logging()


if __name__ == "__main__":
    celery_app.worker_main(
        [
            "worker",
            f"--loglevel={settings.LOG_LEVEL.lower()}",
            f"--queues={settings.CELERY_QUEUE_NAME}",
            "--concurrency=1",
        ]
    )
