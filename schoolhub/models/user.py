"""User model for authentication and user management."""

from typing import Optional

from sqlmodel import Field

from schoolhub.models.base import TimestampModel


class User(TimestampModel, table=True):
    """User database model."""

    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(
        unique=True,
        index=True,
        nullable=False,
        max_length=255,
        description="User email address, also the login name",
    )
    name: str = Field(
        nullable=False,
        max_length=255,
        description="User's display name",
    )
    hashed_password: str = Field(
        nullable=False,
        description="Hashed password using Argon2id",
    )
    profile_img: Optional[str] = Field(
        default=None,
        max_length=1024,
        description="URL of the user's profile picture",
    )
    role_id: Optional[int] = Field(
        default=None,
        foreign_key="roles.id",
        index=True,
        description="Role granting the user's permissions",
    )
    is_active: bool = Field(
        default=True,
        nullable=False,
        description="Whether the user account is active",
    )
