"""User schemas for request/response validation."""

from typing import Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, ConfigDict


class UserBase(BaseModel):
    """Base user schema with common fields."""

    email: EmailStr = Field(
        ..., description="User email address", examples=["teacher@school.edu"]
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="User's display name",
        examples=["Jane Doe"],
    )
    profile_img: Optional[str] = Field(
        default=None,
        max_length=1024,
        description="Profile picture URL",
    )


class UserCreate(UserBase):
    """Schema for registering a new user."""

    password: str = Field(
        ...,
        min_length=8,
        max_length=100,
        description="User password (minimum 8 characters)",
        examples=["SecureP@ssw0rd"],
    )


class UserUpdate(BaseModel):
    """Schema for updating user information.

    ``role_id`` and ``is_active`` are only honoured for callers holding
    ``users:write``.
    """

    email: Optional[EmailStr] = Field(default=None, description="User email address")
    name: Optional[str] = Field(
        default=None, min_length=1, max_length=255, description="Display name"
    )
    profile_img: Optional[str] = Field(default=None, max_length=1024)
    password: Optional[str] = Field(
        default=None,
        min_length=8,
        max_length=100,
        description="New password",
    )
    role_id: Optional[int] = Field(default=None, description="Role ID")
    is_active: Optional[bool] = Field(default=None, description="Account active status")


class UserResponse(UserBase):
    """Schema for user response (public information)."""

    id: int = Field(..., description="User ID")
    role_id: Optional[int] = Field(default=None, description="Role ID")
    is_active: bool = Field(..., description="Whether the account is active")
    created_at: datetime = Field(..., description="Account creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)


class UserLogin(BaseModel):
    """Schema for JSON login."""

    email: str = Field(..., description="Account email", examples=["a@x.com"])
    password: str = Field(..., description="User password", examples=["secret"])
