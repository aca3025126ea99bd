"""Permission management endpoints."""

from typing import Annotated, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from schoolhub.api.deps import Claims, get_db, require_permission
from schoolhub.core.exceptions import ConflictError, NotFoundError
from schoolhub.models import Permission
from schoolhub.schemas import PermissionCreate, PermissionResponse, PermissionUpdate

router = APIRouter()


async def _get_permission_or_404(db: AsyncSession, permission_id: int) -> Permission:
    permission = await db.get(Permission, permission_id)
    if not permission:
        raise NotFoundError("Permission not found")
    return permission


async def _ensure_unique_name(db: AsyncSession, name: str) -> None:
    result = await db.execute(select(Permission).where(Permission.name == name))
    if result.scalar_one_or_none():
        raise ConflictError(f'Permission with name "{name}" already exists')


@router.get("", response_model=List[PermissionResponse])
async def list_permissions(
    db: Annotated[AsyncSession, Depends(get_db)],
    claims: Annotated[Claims, Depends(require_permission("permissions:read"))],
) -> List[Permission]:
    """List all permissions."""
    result = await db.execute(select(Permission).order_by(Permission.name))
    return list(result.scalars().all())


@router.get("/{permission_id}", response_model=PermissionResponse)
async def get_permission(
    permission_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    claims: Annotated[Claims, Depends(require_permission("permissions:read"))],
) -> Permission:
    return await _get_permission_or_404(db, permission_id)


@router.post(
    "", response_model=PermissionResponse, status_code=status.HTTP_201_CREATED
)
async def create_permission(
    permission_in: PermissionCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    claims: Annotated[Claims, Depends(require_permission("permissions:write"))],
) -> Permission:
    """Create a permission. Names are unique."""
    await _ensure_unique_name(db, permission_in.name)

    permission = Permission(**permission_in.model_dump())
    db.add(permission)
    await db.commit()
    await db.refresh(permission)
    return permission


@router.put("/{permission_id}", response_model=PermissionResponse)
async def update_permission(
    permission_id: int,
    permission_update: PermissionUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    claims: Annotated[Claims, Depends(require_permission("permissions:write"))],
) -> Permission:
    """Rename a permission or change its description."""
    permission = await _get_permission_or_404(db, permission_id)
    update_data = permission_update.model_dump(exclude_unset=True, exclude_none=True)

    if "name" in update_data and update_data["name"] != permission.name:
        await _ensure_unique_name(db, update_data["name"])

    for field, value in update_data.items():
        setattr(permission, field, value)

    db.add(permission)
    await db.commit()
    await db.refresh(permission)
    return permission


@router.delete("/{permission_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_permission(
    permission_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    claims: Annotated[Claims, Depends(require_permission("permissions:write"))],
) -> None:
    """Delete a permission and remove it from every role."""
    permission = await _get_permission_or_404(db, permission_id)
    permission.roles = []
    await db.delete(permission)
    await db.commit()
