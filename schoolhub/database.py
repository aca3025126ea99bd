"""Database connection and session management."""

from typing import Any, AsyncGenerator, Dict

from sqlmodel import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from schoolhub.config import settings


def get_async_database_url(url: str) -> str:
    """Map a sync database URL to its async driver equivalent."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def get_sync_database_url(url: str) -> str:
    """Map an async database URL back to its sync driver equivalent."""
    return url.replace("+asyncpg", "").replace("+aiosqlite", "")


def engine_options(url: str) -> Dict[str, Any]:
    """Pool options for ``url``; SQLite does not take pool sizing."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_size": 10, "max_overflow": 20}


# Create synchronous engine for scripts and background tasks
sync_database_url = get_sync_database_url(settings.DATABASE_URL)
sync_engine = create_engine(
    sync_database_url,
    echo=settings.DATABASE_ECHO,
    **engine_options(sync_database_url),
)

# Create async engine for FastAPI
async_database_url = get_async_database_url(settings.DATABASE_URL)
async_engine = create_async_engine(
    async_database_url,
    echo=settings.DATABASE_ECHO,
    **engine_options(async_database_url),
)

# Create async session factory
async_session_maker = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Get an async database session for FastAPI endpoints."""
    async with async_session_maker() as session:
        yield session
