"""User management endpoints (CRUD operations)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select, func

from schoolhub.api.deps import (
    Claims,
    get_auth_service,
    get_current_claims,
    get_db,
    require_permission,
)
from schoolhub.core.exceptions import (
    BadRequestError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from schoolhub.core.security import get_password_hash
from schoolhub.models import Role, User
from schoolhub.schemas import PaginatedResponse, UserResponse, UserUpdate
from schoolhub.services.auth_service import AuthService
from schoolhub.services.identity import normalize_email
from schoolhub.services.refresh_token_store import RefreshTokenStore
from schoolhub.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

# Fields an explicit null may reset
CLEARABLE_FIELDS = {"profile_img", "role_id"}


async def _get_user_or_404(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


@router.get("", response_model=PaginatedResponse[UserResponse])
async def list_users(
    db: Annotated[AsyncSession, Depends(get_db)],
    claims: Annotated[Claims, Depends(require_permission("users:read"))],
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(10, ge=1, le=100, description="Items per page"),
    role_id: int | None = Query(None, description="Only users holding this role"),
) -> PaginatedResponse[UserResponse]:
    """
    List users with pagination.

    Requires ``users:read``.
    """
    query = select(User)
    count_query = select(func.count()).select_from(User)
    if role_id is not None:
        query = query.where(User.role_id == role_id)
        count_query = count_query.where(User.role_id == role_id)

    total = (await db.execute(count_query)).scalar() or 0

    result = await db.execute(
        query.order_by(User.id).offset((page - 1) * page_size).limit(page_size)
    )

    return PaginatedResponse[UserResponse].build(
        items=[UserResponse.model_validate(u) for u in result.scalars().all()],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    claims: Annotated[Claims, Depends(get_current_claims)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> User:
    """
    Get user by ID.

    Users can always read their own profile; reading others needs
    ``users:read``.
    """
    if int(claims["sub"]) != user_id:
        await auth.check_permission(claims, "users:read")

    return await _get_user_or_404(db, user_id)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    user_update: UserUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    claims: Annotated[Claims, Depends(get_current_claims)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> User:
    """
    Update user information.

    Users can update their own profile. Updating others, changing a role or
    toggling ``is_active`` needs ``users:write``. Changing the password or
    deactivating the account revokes the user's refresh tokens.
    """
    is_self = int(claims["sub"]) == user_id
    can_write = await auth.has_permission(claims, "users:write")
    if not is_self and not can_write:
        await auth.check_permission(claims, "users:write")

    user = await _get_user_or_404(db, user_id)
    update_data = {
        field: value
        for field, value in user_update.model_dump(exclude_unset=True).items()
        if value is not None or field in CLEARABLE_FIELDS
    }

    if not can_write:
        update_data.pop("role_id", None)
        update_data.pop("is_active", None)

    if "email" in update_data:
        update_data["email"] = normalize_email(update_data["email"])
        if update_data["email"] != user.email:
            email_result = await db.execute(
                select(User).where(User.email == update_data["email"])
            )
            if email_result.scalar_one_or_none():
                raise ConflictError("Email already registered")

    if update_data.get("role_id") is not None:
        if await db.get(Role, update_data["role_id"]) is None:
            raise BadRequestError("Role does not exist")

    revoke_sessions = "password" in update_data or update_data.get("is_active") is False

    if "password" in update_data:
        update_data["hashed_password"] = get_password_hash(update_data.pop("password"))

    for field, value in update_data.items():
        setattr(user, field, value)

    db.add(user)
    await db.commit()
    await db.refresh(user)

    if revoke_sessions:
        await RefreshTokenStore(db).revoke_all(user.id)

    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    claims: Annotated[Claims, Depends(require_permission("users:write"))],
) -> None:
    """
    Delete user (hard delete).

    Requires ``users:write``. Outstanding refresh tokens are revoked first.
    """
    user = await _get_user_or_404(db, user_id)

    if user.id == int(claims["sub"]):
        raise PermissionDeniedError("Cannot delete your own account")

    await RefreshTokenStore(db).revoke_all(user.id)
    await db.delete(user)
    await db.commit()
    logger.info("Deleted user", extra={"deleted_user_id": user_id})
