"""Role and permission schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PERMISSION_NAME_PATTERN = r"^[a-z][a-z0-9_-]*(:[a-z][a-z0-9_-]*)*$"


class PermissionCreate(BaseModel):
    """Schema for creating a permission."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        pattern=PERMISSION_NAME_PATTERN,
        description="Unique permission name",
        examples=["students:read"],
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="What the permission allows",
    )


class PermissionUpdate(BaseModel):
    """Schema for updating a permission."""

    name: Optional[str] = Field(
        default=None, min_length=1, max_length=100, pattern=PERMISSION_NAME_PATTERN
    )
    description: Optional[str] = Field(default=None, min_length=1, max_length=255)


class PermissionResponse(BaseModel):
    """Permission as returned by the API."""

    id: int
    name: str
    description: str

    model_config = ConfigDict(from_attributes=True)


class RoleCreate(BaseModel):
    """Schema for creating a role; permissions are referenced by name."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Unique role name",
        examples=["Teacher"],
    )
    permissions: List[str] = Field(
        default_factory=list,
        description="Names of the permissions granted by the role",
        examples=[["users:read"]],
    )

    @field_validator("permissions")
    @classmethod
    def deduplicate_permissions(cls, v: List[str]) -> List[str]:
        """Drop repeated names, keeping first occurrence order."""
        return list(dict.fromkeys(v))


class RoleUpdate(BaseModel):
    """Schema for updating a role. ``permissions`` replaces the whole set."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    permissions: Optional[List[str]] = Field(default=None)

    @field_validator("permissions")
    @classmethod
    def deduplicate_permissions(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return list(dict.fromkeys(v)) if v is not None else v


class RoleResponse(BaseModel):
    """Role as returned by the API."""

    id: int
    name: str
    permissions: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("permissions", mode="before")
    @classmethod
    def permission_names(cls, v):
        """Accept ORM ``Permission`` objects as well as plain names."""
        return sorted(getattr(p, "name", p) for p in v)
