"""Role management endpoints."""

from typing import Annotated, List

from fastapi import APIRouter, Depends, status
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from schoolhub.api.deps import Claims, get_db, require_permission
from schoolhub.core.exceptions import BadRequestError, ConflictError, NotFoundError
from schoolhub.models import Permission, Role, User
from schoolhub.schemas import RoleCreate, RoleResponse, RoleUpdate
from schoolhub.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


async def resolve_permissions(db: AsyncSession, names: List[str]) -> List[Permission]:
    """Load permissions by name; every name must exist."""
    if not names:
        return []

    result = await db.execute(select(Permission).where(Permission.name.in_(names)))
    found = {permission.name: permission for permission in result.scalars()}

    missing = [name for name in names if name not in found]
    if missing:
        raise BadRequestError(f"Unknown permissions: {', '.join(missing)}")

    return [found[name] for name in names]


async def _get_role_or_404(db: AsyncSession, role_id: int) -> Role:
    role = await db.get(Role, role_id)
    if not role:
        raise NotFoundError("Role not found")
    return role


async def _ensure_unique_name(db: AsyncSession, name: str) -> None:
    result = await db.execute(select(Role).where(Role.name == name))
    if result.scalar_one_or_none():
        raise ConflictError("Role already exists")


@router.get("", response_model=List[RoleResponse])
async def list_roles(
    db: Annotated[AsyncSession, Depends(get_db)],
    claims: Annotated[Claims, Depends(require_permission("roles:read"))],
) -> List[Role]:
    """List every role with its permission names."""
    result = await db.execute(select(Role).order_by(Role.name))
    return list(result.scalars().all())


@router.get("/{role_id}", response_model=RoleResponse)
async def get_role(
    role_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    claims: Annotated[Claims, Depends(require_permission("roles:read"))],
) -> Role:
    """Get a role by ID."""
    return await _get_role_or_404(db, role_id)


@router.post("", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
async def create_role(
    role_in: RoleCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    claims: Annotated[Claims, Depends(require_permission("roles:write"))],
) -> Role:
    """
    Create a role.

    Permissions are referenced by name and must already exist.
    """
    await _ensure_unique_name(db, role_in.name)
    permissions = await resolve_permissions(db, role_in.permissions)

    role = Role(name=role_in.name, permissions=permissions)
    db.add(role)
    await db.commit()
    await db.refresh(role)

    logger.info("Created role", extra={"role": role.name})
    return role


@router.put("/{role_id}", response_model=RoleResponse)
async def update_role(
    role_id: int,
    role_update: RoleUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    claims: Annotated[Claims, Depends(require_permission("roles:write"))],
) -> Role:
    """
    Rename a role and/or replace its permission set.

    Permission changes apply to session tokens immediately, since checks read
    the role's current permissions.
    """
    role = await _get_role_or_404(db, role_id)

    if role_update.name is not None and role_update.name != role.name:
        await _ensure_unique_name(db, role_update.name)
        role.name = role_update.name

    if role_update.permissions is not None:
        role.permissions = await resolve_permissions(db, role_update.permissions)

    db.add(role)
    await db.commit()
    await db.refresh(role)
    return role


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_role(
    role_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    claims: Annotated[Claims, Depends(require_permission("roles:write"))],
) -> None:
    """
    Delete a role.

    Users holding it are left without a role.
    """
    role = await _get_role_or_404(db, role_id)

    await db.execute(update(User).where(User.role_id == role_id).values(role_id=None))
    role.permissions = []
    await db.delete(role)
    await db.commit()
    logger.info("Deleted role", extra={"role_id": role_id})
