"""Default permission catalogue and administrator account."""

from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from schoolhub.core.security import get_password_hash
from schoolhub.models import Permission, Role, User
from schoolhub.services.identity import normalize_email
from schoolhub.utils.logger import get_logger

logger = get_logger(__name__)

ADMIN_ROLE_NAME = "Admin"

DEFAULT_PERMISSIONS: Dict[str, str] = {
    "users:read": "List and view user accounts",
    "users:write": "Update, deactivate and delete user accounts",
    "roles:read": "List and view roles",
    "roles:write": "Create, update and delete roles",
    "permissions:read": "List and view permissions",
    "permissions:write": "Create, update and delete permissions",
}


async def ensure_permissions(session: AsyncSession) -> List[Permission]:
    """Create any missing default permission and return the whole catalogue."""
    result = await session.execute(select(Permission))
    existing = {permission.name: permission for permission in result.scalars()}

    for name, description in DEFAULT_PERMISSIONS.items():
        if name not in existing:
            permission = Permission(name=name, description=description)
            session.add(permission)
            existing[name] = permission
            logger.info("Created permission", extra={"permission": name})

    await session.commit()
    return list(existing.values())


async def ensure_admin_role(session: AsyncSession) -> Role:
    """Create or top up the admin role so it holds every permission."""
    permissions = await ensure_permissions(session)

    result = await session.execute(select(Role).where(Role.name == ADMIN_ROLE_NAME))
    role = result.scalar_one_or_none()
    if role is None:
        role = Role(name=ADMIN_ROLE_NAME, permissions=permissions)
        logger.info("Created admin role")
    else:
        role.permissions = permissions

    session.add(role)
    await session.commit()
    await session.refresh(role)
    return role


async def seed_admin(
    session: AsyncSession,
    email: str,
    password: str,
    name: str = "Administrator",
) -> User:
    """Create the admin user, or attach the admin role to an existing one.

    An existing user's password is left untouched.
    """
    role = await ensure_admin_role(session)

    email = normalize_email(email)
    result = await session.execute(select(User).where(User.email == email))
    user: Optional[User] = result.scalar_one_or_none()
    if user is None:
        user = User(
            email=email,
            name=name,
            hashed_password=get_password_hash(password),
            role_id=role.id,
            is_active=True,
        )
        logger.info("Created admin user", extra={"user_email": user.email})
    else:
        user.role_id = role.id

    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user
