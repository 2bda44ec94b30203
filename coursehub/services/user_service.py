"""
User Service

Profile updates and admin user management.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.core.exceptions import BusinessRuleError, NotFoundError, ValidationError
from coursehub.core.storage import USERS_BUCKET, LocalObjectStorage
from coursehub.models.user import User
from coursehub.schemas.user import AdminUserCreate, AdminUserUpdate
from coursehub.services import auth_service
from coursehub.services.course_service import upload_image


logger = logging.getLogger(__name__)


async def get_user(user_id: uuid.UUID, db: AsyncSession) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise NotFoundError("No user found with that ID")

    return user


async def list_users(db: AsyncSession) -> List[User]:
    result = await db.execute(select(User).order_by(User.created_at.desc()))
    return list(result.scalars().all())


async def update_me(
    user: User,
    db: AsyncSession,
    storage: LocalObjectStorage,
    full_name: Optional[str] = None,
    photo: Optional[bytes] = None,
    photo_content_type: Optional[str] = None,
) -> User:
    """
    Update the caller's profile.

    Only the display name and photo can be changed here; passwords go
    through the reset flow.

    Raises:
        ValidationError: If nothing is being updated or the photo is not an image.
    """
    name = full_name.strip() if full_name else None
    if not name and not photo:
        raise ValidationError("No valid fields to update")

    if photo:
        user.photo = await upload_image(
            storage, USERS_BUCKET, f"user-{user.id}", photo, photo_content_type
        )
    if name:
        user.full_name = name

    await db.commit()
    await db.refresh(user)
    return user


async def deactivate(user: User, db: AsyncSession) -> None:
    """Soft-delete the caller's account."""
    user.is_active = False
    await db.commit()
    logger.info("User %s deactivated their account", user.id)


async def admin_create_user(data: AdminUserCreate, db: AsyncSession) -> User:
    return await auth_service.sign_up(
        data.email, data.password, data.full_name, db, role=data.role
    )


async def admin_update_user(
    user_id: uuid.UUID,
    data: AdminUserUpdate,
    db: AsyncSession,
) -> User:
    """
    Update any user (admin).

    Raises:
        ValidationError: If nothing is being updated.
        NotFoundError: If the user does not exist.
        BusinessRuleError: If the new email is taken.
    """
    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        raise ValidationError("No valid fields to update")

    user = await get_user(user_id, db)
    if "email" in updates:
        updates["email"] = updates["email"].lower()
    for field, value in updates.items():
        setattr(user, field, value)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise BusinessRuleError("Email already registered")
    await db.refresh(user)
    return user


async def admin_delete_user(user_id: uuid.UUID, db: AsyncSession) -> None:
    """Hard-delete a user; their courses, reviews and payments cascade."""
    user = await get_user(user_id, db)
    await db.delete(user)
    await db.commit()
    logger.info("User %s deleted", user_id)
