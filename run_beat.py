#!/usr/bin/env python
"""Start Celery beat, which enqueues the refresh token sweep."""

from schoolhub.celery_app import celery_app
from schoolhub.config import settings
from schoolhub.utils.logger import setup_logging

setup_logging()


if __name__ == "__main__":
    celery_app.start(["beat", f"--loglevel={settings.LOG_LEVEL.lower()}"])
