"""Token schemas for the session/refresh token flow."""

from typing import Optional

from pydantic import BaseModel, Field


class Token(BaseModel):
    """Login response: a session token and a refresh token."""

    access_token: str = Field(..., description="Signed session token (JWT)")
    refresh_token: str = Field(..., description="Opaque refresh token")
    token_type: str = Field(default="bearer", description="Token type")


class RefreshedToken(BaseModel):
    """Refresh response.

    ``refresh_token`` is only returned when rotation is enabled; otherwise the
    presented refresh token stays valid until it expires.
    """

    access_token: str = Field(..., description="New signed session token")
    refresh_token: Optional[str] = Field(
        default=None, description="Replacement refresh token, if rotated"
    )
    token_type: str = Field(default="bearer", description="Token type")


class TokenPayload(BaseModel):
    """Claims carried by a verified session token."""

    sub: str = Field(..., pattern=r"^\d+$", description="Subject (user ID)")
    role: Optional[int] = Field(default=None, description="Role ID")
    email: str = Field(..., description="User email")


class RefreshTokenRequest(BaseModel):
    """Body carrying a refresh token (refresh and logout)."""

    refresh_token: str = Field(
        ...,
        min_length=1,
        description="Refresh token received at login",
    )
