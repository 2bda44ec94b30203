"""
User Routes

Endpoints for the caller's profile and admin user management.
"""

import uuid
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.api.deps import get_current_user, require_admin
from coursehub.core.database import get_db
from coursehub.core.storage import LocalObjectStorage, get_storage
from coursehub.models.user import User
from coursehub.schemas.common import Envelope
from coursehub.schemas.user import AdminUserCreate, AdminUserUpdate, UserResponse
from coursehub.services import user_service


router = APIRouter(prefix="/users", tags=["Users"])


@router.get(
    "/me",
    response_model=Envelope[UserResponse],
    summary="Get current user profile",
)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """
    Get the currently logged-in user's profile.

    The token may come from the Authorization header or the jwt cookie.
    """
    return {"data": current_user}


@router.patch(
    "/me",
    response_model=Envelope[UserResponse],
    summary="Update current user profile",
)
async def update_me(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    storage: Annotated[LocalObjectStorage, Depends(get_storage)],
    full_name: Annotated[Optional[str], Form(max_length=255)] = None,
    photo: Annotated[Optional[UploadFile], File()] = None,
):
    """
    Update the caller's name and/or profile photo (multipart form).

    Raises:
        ValidationError: 400 if nothing is sent or the photo is not an image.
    """
    content = await photo.read() if photo is not None else None
    user = await user_service.update_me(
        current_user,
        db,
        storage,
        full_name=full_name,
        photo=content,
        photo_content_type=photo.content_type if photo is not None else None,
    )
    return {"data": user}


@router.patch(
    "/me/deactivate",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Deactivate own account",
)
async def deactivate_me(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> None:
    await user_service.deactivate(current_user, db)


@router.get(
    "/",
    response_model=Envelope[List[UserResponse]],
    summary="List all users (admin)",
)
async def list_users(
    _admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    users = await user_service.list_users(db)
    return {"results": len(users), "data": users}


@router.post(
    "/",
    response_model=Envelope[UserResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create a user (admin)",
)
async def create_user(
    user_data: AdminUserCreate,
    _admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    user = await user_service.admin_create_user(user_data, db)
    return {"data": user}


@router.get(
    "/{user_id}",
    response_model=Envelope[UserResponse],
    summary="Get a user (admin)",
)
async def get_user(
    user_id: uuid.UUID,
    _admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    user = await user_service.get_user(user_id, db)
    return {"data": user}


@router.patch(
    "/{user_id}",
    response_model=Envelope[UserResponse],
    summary="Update a user (admin)",
)
async def update_user(
    user_id: uuid.UUID,
    user_update: AdminUserUpdate,
    _admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    user = await user_service.admin_update_user(user_id, user_update, db)
    return {"data": user}


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a user (admin)",
)
async def delete_user(
    user_id: uuid.UUID,
    _admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> None:
    await user_service.admin_delete_user(user_id, db)
