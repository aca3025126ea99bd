"""Read-only data access used by the auth flow.

The auth service never touches ORM instances; these stores hand it plain
value objects instead.
"""

from dataclasses import dataclass
from typing import Optional, Protocol, Set

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from schoolhub.models import Permission, RolePermission, User


@dataclass(frozen=True, slots=True)
class UserIdentity:
    """The slice of a user the auth flow needs."""

    id: int
    email: str
    name: str
    hashed_password: str
    role_id: Optional[int]
    is_active: bool

    @classmethod
    def from_model(cls, user: User) -> "UserIdentity":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            hashed_password=user.hashed_password,
            role_id=user.role_id,
            is_active=user.is_active,
        )


class IdentityStore(Protocol):
    async def find_by_email(self, email: str) -> Optional[UserIdentity]: ...

    async def find_by_id(self, user_id: int) -> Optional[UserIdentity]: ...


class PermissionStore(Protocol):
    async def permissions_for_role(self, role_id: int) -> Set[str]: ...


def normalize_email(email: str) -> str:
    """Emails are stored and matched lower-cased."""
    return email.strip().lower()


class SqlIdentityStore:
    """Identity lookups against the ``users`` table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_email(self, email: str) -> Optional[UserIdentity]:
        result = await self.session.execute(
            select(User).where(User.email == normalize_email(email))
        )
        user = result.scalar_one_or_none()
        return UserIdentity.from_model(user) if user else None

    async def find_by_id(self, user_id: int) -> Optional[UserIdentity]:
        user = await self.session.get(User, user_id)
        return UserIdentity.from_model(user) if user else None


class SqlPermissionStore:
    """Permission lookups through the ``role_permissions`` link table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def permissions_for_role(self, role_id: int) -> Set[str]:
        result = await self.session.execute(
            select(Permission.name)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .where(RolePermission.role_id == role_id)
        )
        return set(result.scalars().all())
