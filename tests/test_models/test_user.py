"""Tests for the user and refresh token models."""

import pytest
from datetime import datetime
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, create_engine, SQLModel, select

from schoolhub.models import RefreshToken, User
from schoolhub.core.security import get_password_hash


@pytest.fixture
def test_engine():
    """Create a test database engine."""
    engine = create_engine("sqlite:///:memory:")
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def test_session(test_engine):
    """Create a test database session."""
    with Session(test_engine) as session:
        yield session


def make_user(email: str = "test@example.com") -> User:
    return User(
        email=email,
        name="Test User",
        hashed_password=get_password_hash("password123"),
    )


def test_user_model_creation(test_session: Session) -> None:
    """Test creating a user model."""
    user = make_user()

    test_session.add(user)
    test_session.commit()
    test_session.refresh(user)

    assert user.id is not None
    assert user.email == "test@example.com"
    assert user.name == "Test User"
    assert user.profile_img is None


def test_user_model_defaults(test_session: Session) -> None:
    """New users are active, role-less and timestamped."""
    user = make_user()

    test_session.add(user)
    test_session.commit()
    test_session.refresh(user)

    assert user.is_active is True
    assert user.role_id is None
    assert isinstance(user.created_at, datetime)
    assert isinstance(user.updated_at, datetime)
    assert user.created_at.tzinfo is None


def test_user_email_unique(test_session: Session) -> None:
    test_session.add(make_user())
    test_session.commit()

    test_session.add(make_user())
    with pytest.raises(IntegrityError):
        test_session.commit()


def test_user_password_not_plain(test_session: Session) -> None:
    user = make_user()

    test_session.add(user)
    test_session.commit()

    assert user.hashed_password != "password123"
    assert user.hashed_password.startswith("$argon2id$")


def test_refresh_token_model(test_session: Session) -> None:
    user = make_user()
    test_session.add(user)
    test_session.commit()

    token = RefreshToken(token="opaque-value", user_id=user.id)
    test_session.add(token)
    test_session.commit()

    stored = test_session.exec(
        select(RefreshToken).where(RefreshToken.token == "opaque-value")
    ).one()
    assert stored.user_id == user.id
    assert isinstance(stored.created_at, datetime)


def test_refresh_token_value_unique(test_session: Session) -> None:
    user = make_user()
    test_session.add(user)
    test_session.commit()

    test_session.add(RefreshToken(token="same", user_id=user.id))
    test_session.commit()
    test_session.add(RefreshToken(token="same", user_id=user.id))
    with pytest.raises(IntegrityError):
        test_session.commit()


def test_timestamps_round_trip_naive_utc(test_session: Session) -> None:
    created = datetime(2026, 1, 15, 9, 0)
    user = make_user()
    user.created_at = created
    test_session.add(user)
    test_session.commit()

    user.name = "Renamed"
    test_session.add(user)
    test_session.commit()
    test_session.refresh(user)

    test_session.add(RefreshToken(token="naive", user_id=user.id, created_at=created))
    test_session.commit()
    token = test_session.exec(
        select(RefreshToken).where(RefreshToken.token == "naive")
    ).one()

    assert user.created_at == created
    assert user.updated_at.tzinfo is None
    assert token.created_at == created
    assert User.__table__.c.created_at.type.timezone is False
    assert RefreshToken.__table__.c.created_at.type.timezone is False
