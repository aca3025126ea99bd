"""Database models package."""

from schoolhub.models.base import TimestampModel
from schoolhub.models.user import User
from schoolhub.models.role import Role, Permission, RolePermission
from schoolhub.models.refresh_token import RefreshToken

__all__ = [
    "TimestampModel",
    "User",
    "Role",
    "Permission",
    "RolePermission",
    "RefreshToken",
]
