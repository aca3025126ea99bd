"""Refresh token model."""

from typing import Optional

from pydantic import NaiveDatetime
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from schoolhub.models.base import utcnow


class RefreshToken(SQLModel, table=True):
    """Opaque refresh token issued at login.

    Rows older than ``REFRESH_TOKEN_EXPIRE_DAYS`` are invisible to lookups
    and removed by the periodic sweep.
    """

    __tablename__ = "refresh_tokens"

    id: Optional[int] = Field(default=None, primary_key=True)
    token: str = Field(
        unique=True,
        index=True,
        nullable=False,
        max_length=128,
        description="Opaque random token value",
    )
    user_id: int = Field(
        foreign_key="users.id",
        index=True,
        nullable=False,
        description="Owner of the token",
    )
    created_at: NaiveDatetime = Field(
        default_factory=utcnow,
        sa_type=DateTime(timezone=False),
        index=True,
        nullable=False,
        description="Issue time; expiry is measured from here",
    )
