"""Persistence of opaque refresh tokens with absolute expiry."""

import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy import Delete, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from schoolhub.config import settings
from schoolhub.core.exceptions import RefreshTokenNotFound
from schoolhub.models import RefreshToken
from schoolhub.models.base import utcnow
from schoolhub.utils.logger import get_logger

logger = get_logger(__name__)


def default_refresh_ttl() -> timedelta:
    """Refresh token lifetime from settings."""
    return settings.refresh_token_ttl


def expired_before(ttl: timedelta, now: Optional[datetime] = None) -> datetime:
    """Creation time at or before which a token is expired."""
    return (now or utcnow()) - ttl


def purge_statement(cutoff: datetime) -> Delete:
    """DELETE of every token created at or before ``cutoff``.

    Shared by the async store and the sync Celery sweep.
    """
    return delete(RefreshToken).where(RefreshToken.created_at <= cutoff)


class RefreshTokenStore:
    """Refresh tokens keyed by value, each owned by one user.

    A token is live while ``created_at`` is newer than ``now - ttl``. Expired
    rows may linger until the sweep removes them, but lookups already treat
    them as absent.
    """

    def __init__(
        self,
        session: AsyncSession,
        ttl: Optional[timedelta] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session = session
        self.ttl = ttl if ttl is not None else default_refresh_ttl()
        self._clock = clock

    def _cutoff(self) -> datetime:
        return expired_before(self.ttl, self._clock())

    async def create(self, user_id: int) -> str:
        """Persist a new random token for ``user_id`` and return its value."""
        value = secrets.token_urlsafe(32)
        self.session.add(
            RefreshToken(token=value, user_id=user_id, created_at=self._clock())
        )
        await self.session.commit()
        return value

    async def find_valid(self, value: str) -> int:
        """Return the owner of a live token.

        Raises:
            RefreshTokenNotFound: unknown, revoked or expired token
        """
        result = await self.session.execute(
            select(RefreshToken.user_id).where(
                RefreshToken.token == value,
                RefreshToken.created_at > self._cutoff(),
            )
        )
        user_id = result.scalar_one_or_none()
        if user_id is None:
            raise RefreshTokenNotFound(value)
        return user_id

    async def revoke(self, value: str) -> bool:
        """Delete one token. Returns whether it existed."""
        result = await self.session.execute(
            delete(RefreshToken).where(RefreshToken.token == value)
        )
        await self.session.commit()
        return result.rowcount > 0

    async def revoke_all(self, user_id: int) -> int:
        """Delete every token owned by ``user_id``."""
        result = await self.session.execute(
            delete(RefreshToken).where(RefreshToken.user_id == user_id)
        )
        await self.session.commit()
        if result.rowcount:
            logger.info(
                "Revoked refresh tokens",
                extra={"user_id": user_id, "count": result.rowcount},
            )
        return result.rowcount

    async def purge_expired(self) -> int:
        """Delete expired tokens and return how many were removed."""
        result = await self.session.execute(purge_statement(self._cutoff()))
        await self.session.commit()
        return result.rowcount
