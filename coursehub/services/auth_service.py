"""
Auth Service

Identity operations: sign up, sign in, token resolution and password reset.
"""

import logging
import uuid
from typing import Optional, Tuple

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.core.exceptions import AuthenticationError, BusinessRuleError, ValidationError
from coursehub.core.security import (
    create_access_token,
    create_reset_token,
    decode_access_token,
    decode_reset_token,
    hash_password,
    verify_password,
)
from coursehub.models.enums import UserRole
from coursehub.models.user import User
from coursehub.schemas.token import TokenPayload
from coursehub.services import email_service


logger = logging.getLogger(__name__)


async def get_user_by_email(email: str, db: AsyncSession) -> Optional[User]:
    result = await db.execute(
        select(User).where(User.email == email.lower())
    )
    return result.scalar_one_or_none()


async def sign_up(
    email: str,
    password: str,
    full_name: str,
    db: AsyncSession,
    role: UserRole = UserRole.USER,
) -> User:
    """
    Create a user account.

    Raises:
        BusinessRuleError: If the email is already registered.
    """
    if await get_user_by_email(email, db) is not None:
        raise BusinessRuleError("Email already registered")

    user = User(
        email=email.lower(),
        password_hash=hash_password(password),
        full_name=full_name,
        role=role,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise BusinessRuleError("Email already registered")
    await db.refresh(user)

    logger.info("User %s signed up", user.id)
    return user


async def sign_in(email: str, password: str, db: AsyncSession) -> Tuple[User, str]:
    """
    Check credentials and issue an access token.

    Returns:
        Tuple of (user, access_token).

    Raises:
        AuthenticationError: On bad credentials or a deactivated account.
    """
    user = await get_user_by_email(email, db)

    if not user or not verify_password(password, user.password_hash):
        raise AuthenticationError("Incorrect email or password")
    if not user.is_active:
        raise AuthenticationError("This account has been deactivated")

    return user, create_access_token(subject=user.id)


async def resolve_user(token: Optional[str], db: AsyncSession) -> Optional[User]:
    """
    Map a bearer token to an active user.

    Returns:
        The user, or None if the token is missing, invalid or expired, or
        names a missing or deactivated user.
    """
    if not token:
        return None

    payload = decode_access_token(token)
    if payload is None:
        return None

    try:
        user_id = uuid.UUID(TokenPayload.model_validate(payload).sub)
    except (PydanticValidationError, ValueError):
        return None

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        return None
    return user


async def send_password_reset(email: str, db: AsyncSession) -> None:
    """
    Email a password reset link.

    Unknown or deactivated addresses are ignored silently so the reply does
    not reveal which emails are registered.
    """
    user = await get_user_by_email(email, db)
    if user is None or not user.is_active:
        logger.info("Password reset requested for unknown email")
        return

    token = create_reset_token(subject=user.id)
    sent = await email_service.send_password_reset_email(user.email, token, user.full_name)
    if not sent:
        logger.warning("Password reset email for user %s was not delivered", user.id)


async def update_password(reset_token: str, new_password: str, db: AsyncSession) -> User:
    """
    Set a new password using a reset token.

    Raises:
        ValidationError: If the token is invalid or expired, or its user is gone.
    """
    payload = decode_reset_token(reset_token)
    if payload is None:
        raise ValidationError("Invalid or expired reset token")

    try:
        user_id = uuid.UUID(payload.get("sub", ""))
    except ValueError:
        raise ValidationError("Invalid or expired reset token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise ValidationError("Invalid or expired reset token")

    user.password_hash = hash_password(new_password)
    await db.commit()
    await db.refresh(user)

    logger.info("Password updated for user %s", user.id)
    return user
