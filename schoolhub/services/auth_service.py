"""Login, refresh, logout and request authorization."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.config import Settings, settings
from schoolhub.core.exceptions import (
    Forbidden,
    InvalidCredentials,
    InvalidRefreshToken,
    MalformedToken,
    RefreshTokenNotFound,
    Unauthenticated,
)
from schoolhub.core.security import (
    TokenCodec,
    dummy_password_hash,
    token_codec,
    verify_password,
)
from schoolhub.schemas.token import TokenPayload
from schoolhub.services.identity import (
    IdentityStore,
    PermissionStore,
    SqlIdentityStore,
    SqlPermissionStore,
    UserIdentity,
)
from schoolhub.services.refresh_token_store import RefreshTokenStore
from schoolhub.utils.context import set_context
from schoolhub.utils.logger import get_logger, log_auth_event
from schoolhub.utils.telemetry import trace_operation

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class RefreshResult:
    access_token: str
    # Only set when refresh token rotation is enabled
    refresh_token: Optional[str] = None


def session_claims(user: UserIdentity) -> Dict[str, Any]:
    """Claims carried by a session token for ``user``."""
    return {"sub": str(user.id), "role": user.role_id, "email": user.email}


class AuthService:
    """Orchestrates the session token / refresh token flow.

    Each call is independent: all state lives in the stores, and the codec's
    key ring is read-only, so one instance per request is enough.

    Known gaps: session tokens cannot be revoked before they
    expire, and refresh tokens are reusable until they expire unless
    ``rotate_refresh_tokens`` is set.
    """

    def __init__(
        self,
        identities: IdentityStore,
        permissions: PermissionStore,
        refresh_tokens: RefreshTokenStore,
        codec: TokenCodec,
        rotate_refresh_tokens: bool = False,
    ):
        self.identities = identities
        self.permissions = permissions
        self.refresh_tokens = refresh_tokens
        self.codec = codec
        self.rotate_refresh_tokens = rotate_refresh_tokens

    @classmethod
    def for_session(
        cls,
        session: AsyncSession,
        codec: TokenCodec = token_codec,
        config: Settings = settings,
    ) -> "AuthService":
        """Wire the service to SQL-backed stores sharing ``session``."""
        return cls(
            identities=SqlIdentityStore(session),
            permissions=SqlPermissionStore(session),
            refresh_tokens=RefreshTokenStore(session),
            codec=codec,
            rotate_refresh_tokens=config.REFRESH_TOKEN_ROTATION,
        )

    async def login(self, email: str, password: str) -> TokenPair:
        """Check credentials and issue a session token plus a refresh token.

        Unknown email, wrong password and inactive account all raise the
        same ``InvalidCredentials`` so callers cannot tell them apart.
        """
        with trace_operation("auth.login"):
            user = await self.identities.find_by_email(email)

            if user is None:
                verify_password(password, dummy_password_hash())
                log_auth_event(logger, "login.failed", reason="unknown_email")
                raise InvalidCredentials()

            if not verify_password(password, user.hashed_password):
                log_auth_event(
                    logger, "login.failed", reason="bad_password", user_id=user.id
                )
                raise InvalidCredentials()

            if not user.is_active:
                log_auth_event(
                    logger, "login.failed", reason="inactive", user_id=user.id
                )
                raise InvalidCredentials()

            access_token = self.codec.issue(session_claims(user))
            refresh_token = await self.refresh_tokens.create(user.id)

            set_context(user_id=user.id, user_email=user.email)
            log_auth_event(logger, "login.succeeded", user_id=user.id)
            return TokenPair(access_token=access_token, refresh_token=refresh_token)

    async def refresh(self, refresh_token: str) -> RefreshResult:
        """Mint a new session token from a live refresh token.

        Claims are rebuilt from the user's current record, so role changes
        take effect on the next refresh.
        """
        with trace_operation("auth.refresh"):
            try:
                user_id = await self.refresh_tokens.find_valid(refresh_token)
            except RefreshTokenNotFound:
                log_auth_event(logger, "refresh.failed", reason="unknown_token")
                raise InvalidRefreshToken() from None

            user = await self.identities.find_by_id(user_id)
            if user is None or not user.is_active:
                log_auth_event(
                    logger, "refresh.failed", reason="unusable_account", user_id=user_id
                )
                raise InvalidRefreshToken()

            new_refresh_token = None
            if self.rotate_refresh_tokens:
                # Only the caller whose delete removed the row may rotate.
                if not await self.refresh_tokens.revoke(refresh_token):
                    log_auth_event(
                        logger, "refresh.failed", reason="already_rotated", user_id=user.id
                    )
                    raise InvalidRefreshToken()
                new_refresh_token = await self.refresh_tokens.create(user.id)

            set_context(user_id=user.id, user_email=user.email)
            log_auth_event(
                logger,
                "refresh.succeeded",
                user_id=user.id,
                rotated=self.rotate_refresh_tokens,
            )
            return RefreshResult(
                access_token=self.codec.issue(session_claims(user)),
                refresh_token=new_refresh_token,
            )

    async def authorize(
        self, token: Optional[str], required_permission: Optional[str] = None
    ) -> Dict[str, Any]:
        """Verify a session token and, optionally, a permission of its role.

        Raises:
            Unauthenticated: no token, or any ``TokenError`` from the codec
            Forbidden: the role claim is missing or lacks the permission
        """
        with trace_operation(
            "auth.authorize", {"auth.required_permission": required_permission}
        ):
            if not token:
                raise Unauthenticated()

            try:
                payload = TokenPayload.model_validate(self.codec.verify(token))
            except ValidationError as e:
                raise MalformedToken("Token claims are invalid") from e
            claims = payload.model_dump()

            if required_permission is not None:
                await self.check_permission(claims, required_permission)

            return claims

    async def has_permission(self, claims: Dict[str, Any], permission: str) -> bool:
        """Whether the role in ``claims`` grants ``permission``."""
        role_id = claims.get("role")
        if role_id is None:
            return False
        return permission in await self.permissions.permissions_for_role(role_id)

    async def check_permission(self, claims: Dict[str, Any], permission: str) -> None:
        """Raise ``Forbidden`` unless the role in ``claims`` grants ``permission``."""
        if not await self.has_permission(claims, permission):
            log_auth_event(
                logger,
                "authorize.forbidden",
                level=logging.WARNING,
                user_id=claims.get("sub"),
                permission=permission,
            )
            raise Forbidden()

    async def logout(self, refresh_token: str) -> None:
        """Revoke a refresh token. Unknown values are ignored."""
        with trace_operation("auth.logout"):
            revoked = await self.refresh_tokens.revoke(refresh_token)
            log_auth_event(logger, "logout", revoked=revoked)
