"""
Auth Schemas

Pydantic models for authentication request/response validation.
"""

from pydantic import BaseModel, EmailStr, Field

from coursehub.schemas.token import Token
from coursehub.schemas.user import UserResponse


class LoginResponse(Token):
    """Access token plus the logged-in user."""

    user: UserResponse


class ForgotPasswordRequest(BaseModel):
    """Schema for forgot password request."""

    email: EmailStr = Field(..., description="User's email address")


class ResetPasswordRequest(BaseModel):
    """Schema for reset password request."""

    access_token: str = Field(..., description="Reset token from the emailed link")
    new_password: str = Field(..., min_length=8, description="New password (min 8 characters)")
