"""Role and permission models."""

from typing import List, Optional

from sqlmodel import Field, Relationship, SQLModel

from schoolhub.models.base import TimestampModel


class RolePermission(SQLModel, table=True):
    """Link table between roles and permissions."""

    __tablename__ = "role_permissions"

    role_id: Optional[int] = Field(
        default=None, foreign_key="roles.id", primary_key=True
    )
    permission_id: Optional[int] = Field(
        default=None, foreign_key="permissions.id", primary_key=True
    )


class Permission(SQLModel, table=True):
    """A named capability, e.g. ``users:read``."""

    __tablename__ = "permissions"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(
        unique=True,
        index=True,
        nullable=False,
        max_length=100,
        description="Unique permission name",
    )
    description: str = Field(
        nullable=False,
        max_length=255,
        description="What the permission allows",
    )

    roles: List["Role"] = Relationship(
        back_populates="permissions",
        link_model=RolePermission,
        sa_relationship_kwargs={"lazy": "selectin"},
    )


class Role(TimestampModel, table=True):
    """A named set of permissions assigned to users."""

    __tablename__ = "roles"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(
        unique=True,
        index=True,
        nullable=False,
        max_length=100,
        description="Unique role name",
    )

    permissions: List[Permission] = Relationship(
        back_populates="roles",
        link_model=RolePermission,
        sa_relationship_kwargs={"lazy": "selectin"},
    )
