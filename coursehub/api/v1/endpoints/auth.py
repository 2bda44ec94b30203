"""
Authentication Routes

Handles signup, login, logout and the password reset flow.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.api.deps import TOKEN_COOKIE
from coursehub.core.config import settings
from coursehub.core.database import get_db
from coursehub.core.security import create_access_token
from coursehub.models.user import User
from coursehub.schemas.auth import ForgotPasswordRequest, LoginResponse, ResetPasswordRequest
from coursehub.schemas.common import Envelope
from coursehub.schemas.user import UserCreate, UserLogin, UserResponse
from coursehub.services import auth_service


router = APIRouter(prefix="/auth", tags=["Authentication"])


def _set_token_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=TOKEN_COOKIE,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=not settings.is_development,
        samesite="lax",
    )


def _login_payload(user: User, token: str) -> dict:
    return {
        "data": LoginResponse(
            access_token=token,
            user=UserResponse.model_validate(user),
        )
    }


@router.post(
    "/signup",
    response_model=Envelope[LoginResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create a new user account",
)
async def signup(
    user_data: UserCreate,
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Create a new user account and log it in.

    The access token is returned in the body and set as the jwt cookie.

    Raises:
        BusinessRuleError: 400 if the email already exists.
    """
    user = await auth_service.sign_up(
        user_data.email, user_data.password, user_data.full_name, db
    )
    token = create_access_token(subject=user.id)
    _set_token_cookie(response, token)
    return _login_payload(user, token)


@router.post(
    "/login",
    response_model=Envelope[LoginResponse],
    summary="Login with email and password",
)
async def login(
    credentials: UserLogin,
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Authenticate and get an access token.

    Raises:
        AuthenticationError: 401 on bad credentials or a deactivated account.
    """
    user, token = await auth_service.sign_in(credentials.email, credentials.password, db)
    _set_token_cookie(response, token)
    return _login_payload(user, token)


@router.post(
    "/logout",
    response_model=Envelope[None],
    summary="Clear the login cookie",
)
async def logout(response: Response):
    response.delete_cookie(TOKEN_COOKIE)
    return {"message": "Logged out"}


@router.post(
    "/forgot-password",
    response_model=Envelope[None],
    summary="Request a password reset link",
)
async def forgot_password(
    data: ForgotPasswordRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Email a reset link to the address if it belongs to an active account.

    The reply is the same whether or not the email is registered.
    """
    await auth_service.send_password_reset(data.email, db)
    return {"message": "If that email is registered, a reset link has been sent"}


@router.post(
    "/reset-password",
    response_model=Envelope[None],
    summary="Set a new password with a reset token",
)
async def reset_password(
    data: ResetPasswordRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Raises:
        ValidationError: 400 if the reset token is invalid or expired.
    """
    await auth_service.update_password(data.access_token, data.new_password, db)
    return {"message": "Password updated successfully"}
