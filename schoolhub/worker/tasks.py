"""Periodic maintenance tasks."""

from datetime import datetime, timedelta
from typing import Optional

from sqlmodel import Session

from schoolhub.celery_app import celery_app
from schoolhub.database import sync_engine
from schoolhub.services.refresh_token_store import (
    default_refresh_ttl,
    expired_before,
    purge_statement,
)
from schoolhub.utils.context import operation_context
from schoolhub.utils.logger import get_logger, log_timer
from schoolhub.utils.telemetry import add_span_attributes, trace_operation

logger = get_logger(__name__)


def purge_expired_refresh_tokens_sync(
    session: Session,
    ttl: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> int:
    """Delete refresh tokens older than ``ttl`` using a sync session."""
    cutoff = expired_before(ttl or default_refresh_ttl(), now)
    result = session.execute(purge_statement(cutoff))
    session.commit()
    return result.rowcount


@celery_app.task(name="schoolhub.worker.tasks.purge_expired_refresh_tokens")
def purge_expired_refresh_tokens() -> dict:
    """Sweep expired refresh tokens. Scheduled by Celery beat."""
    with (
        operation_context("refresh_tokens.purge"),
        trace_operation("background.purge_refresh_tokens"),
        log_timer("purge_refresh_tokens", logger),
    ):
        with Session(sync_engine) as session:
            deleted = purge_expired_refresh_tokens_sync(session)

        add_span_attributes(**{"refresh_tokens.deleted": deleted})
        logger.info("Purged expired refresh tokens", extra={"deleted": deleted})
        return {"deleted": deleted}
