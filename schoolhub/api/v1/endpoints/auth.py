"""Authentication endpoints: register, login, refresh, logout."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from schoolhub.api.deps import get_auth_service, get_current_user, get_db
from schoolhub.core.exceptions import ConflictError
from schoolhub.core.security import get_password_hash
from schoolhub.models import User
from schoolhub.schemas import (
    RefreshedToken,
    RefreshTokenRequest,
    Token,
    UserCreate,
    UserLogin,
    UserResponse,
)
from schoolhub.middleware.rate_limit import login_rate_limit
from schoolhub.services.auth_service import AuthService
from schoolhub.services.identity import normalize_email

router = APIRouter()


@router.post(
    "/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED
)
async def register(
    user_in: UserCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """
    Register a new user.

    The account starts without a role, so it can sign in but holds no
    permissions until an administrator assigns one.
    """
    email = normalize_email(user_in.email)
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise ConflictError("Email already registered")

    user = User(
        email=email,
        name=user_in.name,
        profile_img=user_in.profile_img,
        hashed_password=get_password_hash(user_in.password),
        is_active=True,
    )

    db.add(user)
    await db.commit()
    await db.refresh(user)

    return user


@router.post("/login", response_model=Token)
@login_rate_limit
async def login(
    request: Request,
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> Token:
    """
    OAuth2 compatible token login.

    The ``username`` form field carries the account email.
    """
    pair = await auth.login(form_data.username, form_data.password)
    return Token(access_token=pair.access_token, refresh_token=pair.refresh_token)


@router.post("/login/json", response_model=Token)
@login_rate_limit
async def login_json(
    request: Request,
    user_login: UserLogin,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> Token:
    """JSON-based login, alternative to the OAuth2 form flow."""
    pair = await auth.login(user_login.email, user_login.password)
    return Token(access_token=pair.access_token, refresh_token=pair.refresh_token)


@router.post("/refresh", response_model=RefreshedToken)
async def refresh_token(
    refresh_request: RefreshTokenRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> RefreshedToken:
    """
    Get a new session token using a refresh token.

    A new refresh token is only returned when rotation is enabled.
    """
    result = await auth.refresh(refresh_request.refresh_token)
    return RefreshedToken(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    refresh_request: RefreshTokenRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> None:
    """
    Revoke a refresh token.

    Session tokens already issued stay valid until they expire.
    """
    await auth.logout(refresh_request.refresh_token)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Profile of the authenticated user."""
    return current_user
