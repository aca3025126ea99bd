"""Liveness and database reachability."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub import __version__
from schoolhub.api.deps import get_db
from schoolhub.schemas import HealthCheckResponse
from schoolhub.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


async def check_database(db: AsyncSession) -> str:
    """``connected``, or ``error: <ExceptionName>`` when the query fails."""
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Database health check failed", extra={"error": str(e)})
        return f"error: {type(e).__name__}"
    return "connected"


@router.get("", response_model=HealthCheckResponse)
async def health_check(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> HealthCheckResponse:
    """Always 200; ``status`` is ``degraded`` while the database is unreachable."""
    database = await check_database(db)
    return HealthCheckResponse(
        status="healthy" if database == "connected" else "degraded",
        version=__version__,
        database=database,
    )
