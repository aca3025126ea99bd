"""Pytest configuration and fixtures."""

import os
from datetime import datetime, timedelta, UTC
from pathlib import Path
from typing import AsyncGenerator, Callable, Awaitable, Dict, Generator, Optional

# Settings are read at import time, so the environment must be ready first
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-do-not-use-in-production")
os.environ.setdefault("LOG_FORMAT", "console")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy import create_engine
from sqlmodel import SQLModel, Session
from opentelemetry import trace

from schoolhub.main import app
from schoolhub.api.deps import get_db, get_token_codec
from schoolhub.core.security import TokenCodec, get_password_hash
from schoolhub.middleware.rate_limit import limiter
from schoolhub.models import Permission, Role, User
from schoolhub.services.seed import seed_admin

TEST_SECRET = "unit-test-signing-key"
TEST_KEY_ID = "test"


class FrozenClock:
    """Controllable clock; calling it returns the current aware UTC time."""

    def __init__(self, start: Optional[datetime] = None):
        self.current = start or datetime(2026, 1, 15, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.current

    def naive(self) -> datetime:
        """Same instant in the naive form stored in the database."""
        return self.current.replace(tzinfo=None)

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def codec(clock: FrozenClock) -> TokenCodec:
    """Session token codec with a fixed key and the frozen clock."""
    return TokenCodec(
        {TEST_KEY_ID: TEST_SECRET},
        TEST_KEY_ID,
        default_ttl=timedelta(minutes=60),
        clock=clock,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(tmp_path: Path) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh SQLite database and session for each test."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(
    db_session: AsyncSession, codec: TokenCodec
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client bound to the test database and codec."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_codec] = lambda: codec

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def sync_session(tmp_path: Path) -> Generator[Session, None, None]:
    """Create a sync SQLite session for code that runs outside the event loop."""
    engine = create_engine(f"sqlite:///{tmp_path / 'sync.db'}", echo=False)

    SQLModel.metadata.create_all(engine)

    with Session(engine) as session:
        yield session

    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(autouse=True)
def reset_rate_limits() -> Generator[None, None, None]:
    """Start every test with empty rate limit counters."""
    limiter.reset()
    yield
    limiter.reset()


@pytest_asyncio.fixture(scope="function")
async def test_user(db_session: AsyncSession) -> User:
    """Active user without a role."""
    user = User(
        email="student@example.com",
        name="Test Student",
        hashed_password=get_password_hash("password123"),
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture(scope="function")
async def admin_user(db_session: AsyncSession) -> User:
    """User holding the admin role with every default permission."""
    return await seed_admin(
        db_session, "admin@example.com", "adminpass123", name="Admin User"
    )


@pytest_asyncio.fixture(scope="function")
async def make_role(
    db_session: AsyncSession,
) -> Callable[..., Awaitable[Role]]:
    """Factory creating a role with the given permission names."""

    async def _make_role(name: str, *permission_names: str) -> Role:
        permissions = []
        for permission_name in permission_names:
            permission = Permission(name=permission_name, description=permission_name)
            db_session.add(permission)
            permissions.append(permission)
        role = Role(name=name, permissions=permissions)
        db_session.add(role)
        await db_session.commit()
        await db_session.refresh(role)
        return role

    return _make_role


@pytest.fixture
def login_as(client: AsyncClient) -> Callable[[str, str], Awaitable[Dict[str, str]]]:
    """Log in through the API and return the token pair."""

    async def _login(email: str, password: str) -> Dict[str, str]:
        response = await client.post(
            "/api/v1/auth/login/json",
            json={"email": email, "password": password},
        )
        assert response.status_code == 200, response.text
        return response.json()

    return _login


@pytest_asyncio.fixture(scope="function")
async def user_headers(login_as, test_user: User) -> Dict[str, str]:
    """Authorization headers for the role-less test user."""
    tokens = await login_as("student@example.com", "password123")
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest_asyncio.fixture(scope="function")
async def admin_headers(login_as, admin_user: User) -> Dict[str, str]:
    """Authorization headers for the admin user."""
    tokens = await login_as("admin@example.com", "adminpass123")
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest.fixture(scope="session", autouse=True)
def shutdown_tracer_provider():
    """Shutdown OpenTelemetry TracerProvider after all tests complete.

    Stops the BatchSpanProcessor's background thread before pytest closes
    stdout/stderr.
    """
    yield

    tracer_provider = trace.get_tracer_provider()
    if hasattr(tracer_provider, "force_flush"):
        tracer_provider.force_flush(timeout_millis=5000)
    if hasattr(tracer_provider, "shutdown"):
        tracer_provider.shutdown()
