"""Schemas package for request/response validation."""

from schoolhub.schemas.common import (
    PaginatedResponse,
    HealthCheckResponse,
)
from schoolhub.schemas.token import (
    Token,
    RefreshedToken,
    TokenPayload,
    RefreshTokenRequest,
)
from schoolhub.schemas.user import (
    UserBase,
    UserCreate,
    UserUpdate,
    UserResponse,
    UserLogin,
)
from schoolhub.schemas.role import (
    PermissionCreate,
    PermissionUpdate,
    PermissionResponse,
    RoleCreate,
    RoleUpdate,
    RoleResponse,
)

__all__ = [
    "PaginatedResponse",
    "HealthCheckResponse",
    "Token",
    "RefreshedToken",
    "TokenPayload",
    "RefreshTokenRequest",
    "UserBase",
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "UserLogin",
    "PermissionCreate",
    "PermissionUpdate",
    "PermissionResponse",
    "RoleCreate",
    "RoleUpdate",
    "RoleResponse",
]
