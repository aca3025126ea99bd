"""Business logic services."""

from schoolhub.services.auth_service import AuthService, RefreshResult, TokenPair
from schoolhub.services.identity import (
    SqlIdentityStore,
    SqlPermissionStore,
    UserIdentity,
)
from schoolhub.services.refresh_token_store import RefreshTokenStore

__all__ = [
    "AuthService",
    "RefreshResult",
    "TokenPair",
    "RefreshTokenStore",
    "SqlIdentityStore",
    "SqlPermissionStore",
    "UserIdentity",
]
