"""Dependencies for API endpoints.

Protected endpoints run an ordered pipeline of dependencies: bearer token
extraction, token verification through ``AuthService.authorize``, an optional
permission check, then loading the caller's user row. Any stage may stop the
request by raising an ``AuthFlowError``, which the application maps to 401 or
403.
"""

from typing import Annotated, Any, AsyncGenerator, Callable, Dict, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.core.exceptions import Unauthenticated
from schoolhub.core.security import TokenCodec, token_codec
from schoolhub.database import get_async_session
from schoolhub.models import User
from schoolhub.services.auth_service import AuthService
from schoolhub.utils.context import set_context

# OAuth2 scheme for token authentication; a missing header is reported by
# AuthService.authorize rather than by FastAPI
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)

Claims = Dict[str, Any]


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session."""
    async for session in get_async_session():
        yield session


def get_token_codec() -> TokenCodec:
    """Process-wide session token codec."""
    return token_codec


async def get_auth_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
) -> AuthService:
    """Auth service bound to the request's database session."""
    return AuthService.for_session(db, codec=codec)


async def get_current_claims(
    token: Annotated[Optional[str], Depends(oauth2_scheme)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> Claims:
    """Verified claims of the caller's session token."""
    claims = await auth.authorize(token)
    set_context(user_id=int(claims["sub"]), user_email=claims.get("email"))
    return claims


def require_permission(permission: str) -> Callable:
    """Build a dependency that only lets callers whose role grants ``permission``."""

    async def dependency(
        token: Annotated[Optional[str], Depends(oauth2_scheme)],
        auth: Annotated[AuthService, Depends(get_auth_service)],
    ) -> Claims:
        claims = await auth.authorize(token, required_permission=permission)
        set_context(user_id=int(claims["sub"]), user_email=claims.get("email"))
        return claims

    dependency.__name__ = f"require_{permission.replace(':', '_')}"
    return dependency


async def get_current_user(
    claims: Annotated[Claims, Depends(get_current_claims)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """User row of the authenticated caller.

    A valid token whose user has since been deleted or deactivated is
    rejected as unauthenticated.
    """
    user = await db.get(User, int(claims["sub"]))
    if user is None or not user.is_active:
        raise Unauthenticated("User no longer exists or is inactive")
    return user
