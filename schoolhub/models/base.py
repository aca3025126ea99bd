"""Base model with common fields for all database models."""

from datetime import datetime, UTC

from pydantic import NaiveDatetime
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the database."""
    return datetime.now(UTC).replace(tzinfo=None)


class TimestampModel(SQLModel):
    """Base model with created_at and updated_at timestamps.

    Timestamps are naive UTC, stored in a column without time zone.
    """

    created_at: NaiveDatetime = Field(
        default_factory=utcnow,
        sa_type=DateTime(timezone=False),
        nullable=False,
        description="Timestamp when the record was created",
    )
    updated_at: NaiveDatetime = Field(
        default_factory=utcnow,
        sa_type=DateTime(timezone=False),
        nullable=False,
        sa_column_kwargs={"onupdate": utcnow},
        description="Timestamp when the record was last updated",
    )
