"""Custom exceptions for the application.

Two families live here. The ``AuthFlowError`` tree is raised by the token
codec and the auth service and knows nothing about HTTP beyond the status
code the API layer should answer with. The ``HTTPException`` subclasses are
raised directly by resource endpoints.
"""

from fastapi import HTTPException, status


class AuthFlowError(Exception):
    """Base class for terminal authentication and authorization failures."""

    status_code: int = status.HTTP_401_UNAUTHORIZED
    default_detail: str = "Authentication failed"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class InvalidCredentials(AuthFlowError):
    """Unknown email, wrong password or inactive account."""

    default_detail = "Invalid email or password"


class InvalidRefreshToken(AuthFlowError):
    """Refresh token is unknown, expired or points at an unusable account."""

    default_detail = "Invalid refresh token"


class Unauthenticated(AuthFlowError):
    """No usable session token was presented."""

    default_detail = "Not authenticated"


class TokenError(Unauthenticated):
    """Session token could not be accepted."""

    default_detail = "Could not validate credentials"


class InvalidSignature(TokenError):
    default_detail = "Invalid token signature"


class TokenExpired(TokenError):
    default_detail = "Token has expired"


class MalformedToken(TokenError):
    default_detail = "Malformed token"


class Forbidden(AuthFlowError):
    """Authenticated, but the role lacks the required permission."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have permission to perform this operation"


class RefreshTokenNotFound(LookupError):
    """No live refresh token matches the presented value."""


class PermissionDeniedError(HTTPException):
    """Exception raised when user doesn't have permission."""

    def __init__(self, detail: str = "Permission denied"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )


class NotFoundError(HTTPException):
    """Exception raised when resource is not found."""

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
        )


class BadRequestError(HTTPException):
    """Exception raised when request is invalid."""

    def __init__(self, detail: str = "Bad request"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )


class ConflictError(HTTPException):
    """Exception raised when resource already exists."""

    def __init__(self, detail: str = "Resource already exists"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )
