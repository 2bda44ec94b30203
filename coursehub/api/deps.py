"""
API Dependencies

Reusable dependencies for API routes including authentication.
"""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.core.database import get_db
from coursehub.core.exceptions import AuthenticationError, AuthorizationError
from coursehub.models.enums import UserRole
from coursehub.models.user import User
from coursehub.services.auth_service import resolve_user


TOKEN_COOKIE = "jwt"

# OAuth2 scheme for token extraction from Authorization header. auto_error is
# off so that the cookie can be tried next.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


def get_token(
    request: Request,
    bearer: Annotated[str | None, Depends(oauth2_scheme)],
) -> str | None:
    """Bearer token from the Authorization header, else the jwt cookie."""
    return bearer or request.cookies.get(TOKEN_COOKIE)


async def get_current_user(
    token: Annotated[str | None, Depends(get_token)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """
    Dependency to get the current authenticated user.

    Args:
        token: JWT from the Authorization header or jwt cookie.
        db: Database session (auto-injected).

    Returns:
        User: The authenticated, active user.

    Raises:
        AuthenticationError: 401 if there is no token, it is invalid or
            expired, or the user is missing or deactivated.
    """
    if not token:
        raise AuthenticationError()

    user = await resolve_user(token, db)
    if user is None:
        raise AuthenticationError("Could not validate credentials")

    return user


async def get_current_user_optional(
    token: Annotated[str | None, Depends(get_token)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User | None:
    """
    Dependency to optionally get the current authenticated user.

    Returns None instead of raising when no valid token is provided.
    """
    return await resolve_user(token, db)


def authorize(user: User, required_role: UserRole) -> None:
    """
    Role check for a resolved user.

    Admins satisfy every role.

    Raises:
        AuthorizationError: If the user lacks the role.
    """
    if user.role == UserRole.ADMIN or user.role == required_role:
        return
    raise AuthorizationError()


async def require_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Dependency that only lets admins through."""
    authorize(current_user, UserRole.ADMIN)
    return current_user
