"""Tests for worker tasks."""

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
from sqlmodel import Session, select

from schoolhub.celery_app import celery_app
from schoolhub.core.security import get_password_hash
from schoolhub.models import RefreshToken, User
from schoolhub.services.refresh_token_store import purge_statement
from schoolhub.worker.tasks import (
    purge_expired_refresh_tokens,
    purge_expired_refresh_tokens_sync,
)

NOW = datetime(2026, 1, 15, 9, 0)


@pytest.fixture
def user(sync_session: Session) -> User:
    user = User(
        email="user@example.com",
        name="User",
        hashed_password=get_password_hash("password123"),
    )
    sync_session.add(user)
    sync_session.commit()
    sync_session.refresh(user)
    return user


def add_token(session: Session, user: User, value: str, age: timedelta) -> None:
    session.add(RefreshToken(token=value, user_id=user.id, created_at=NOW - age))
    session.commit()


def remaining(session: Session) -> set:
    return set(session.exec(select(RefreshToken.token)).all())


def test_purge_removes_only_expired(sync_session: Session, user: User) -> None:
    add_token(sync_session, user, "fresh", timedelta(hours=1))
    add_token(sync_session, user, "almost", timedelta(days=7, seconds=-1))
    add_token(sync_session, user, "boundary", timedelta(days=7))
    add_token(sync_session, user, "stale", timedelta(days=30))

    deleted = purge_expired_refresh_tokens_sync(
        sync_session, ttl=timedelta(days=7), now=NOW
    )

    assert deleted == 2
    assert remaining(sync_session) == {"fresh", "almost"}


def test_purge_with_nothing_expired(sync_session: Session, user: User) -> None:
    add_token(sync_session, user, "fresh", timedelta(minutes=5))

    assert purge_expired_refresh_tokens_sync(sync_session, now=NOW) == 0
    assert remaining(sync_session) == {"fresh"}


def test_purge_task(sync_session: Session, user: User) -> None:
    add_token(sync_session, user, "stale", timedelta(days=365 * 100))

    with patch("schoolhub.worker.tasks.sync_engine", sync_session.get_bind()):
        result = purge_expired_refresh_tokens()

    assert result == {"deleted": 1}
    sync_session.expire_all()
    assert remaining(sync_session) == set()


def test_purge_task_is_scheduled() -> None:
    schedule = celery_app.conf.beat_schedule["purge-expired-refresh-tokens"]

    assert schedule["task"] == purge_expired_refresh_tokens.name
    assert isinstance(schedule["schedule"], timedelta)


def test_sync_sweep_uses_shared_statement(sync_session: Session, user: User) -> None:
    add_token(sync_session, user, "stale", timedelta(days=8))

    with patch(
        "schoolhub.worker.tasks.purge_statement", wraps=purge_statement
    ) as statement:
        assert purge_expired_refresh_tokens_sync(sync_session, now=NOW) == 1

    statement.assert_called_once_with(NOW - timedelta(days=7))
