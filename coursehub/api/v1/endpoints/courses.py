"""
Course Routes

Endpoints for course browsing, authoring and admin management.
"""

from decimal import Decimal
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.api.deps import get_current_user, require_admin
from coursehub.core.database import get_db
from coursehub.core.storage import LocalObjectStorage, get_storage
from coursehub.models.user import User
from coursehub.schemas.common import Envelope
from coursehub.schemas.course import (
    AdminCourseCreate,
    AdminCourseUpdate,
    CourseBase,
    CourseListItem,
    CourseResponse,
    CourseUpdate,
)
from coursehub.services import course_service


router = APIRouter(prefix="/courses", tags=["Courses"])


async def _banner_url(
    image: Optional[UploadFile],
    storage: LocalObjectStorage,
) -> Optional[str]:
    if image is None:
        return None
    content = await image.read()
    return await course_service.upload_banner(storage, content, image.content_type)


@router.get(
    "/",
    response_model=Envelope[List[CourseListItem]],
    summary="List published courses",
)
async def list_courses(
    db: Annotated[AsyncSession, Depends(get_db)],
    page: int = Query(1, ge=1, description="Page number"),
    size: int = Query(20, ge=1, le=100, description="Items per page"),
    search: Optional[str] = Query(None, description="Search by title or author name"),
    category: Optional[str] = Query(None, description="Filter by category"),
):
    """
    List published courses with author names.

    `results` carries the total number of matching courses.
    """
    courses, total = await course_service.get_published_courses(
        db, page=page, size=size, search=search, category=category
    )
    return {"results": total, "data": courses}


@router.get(
    "/my-courses",
    response_model=Envelope[List[CourseResponse]],
    summary="List courses I authored",
)
async def my_courses(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    courses = await course_service.get_author_courses(current_user, db)
    return {"results": len(courses), "data": courses}


@router.post(
    "/postCourse",
    response_model=Envelope[CourseResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create a course (multipart, optional banner image)",
)
async def create_my_course(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    storage: Annotated[LocalObjectStorage, Depends(get_storage)],
    title: Annotated[str, Form(min_length=1, max_length=255)],
    price: Annotated[Decimal, Form(ge=0, max_digits=10, decimal_places=2)],
    description: Annotated[Optional[str], Form()] = None,
    category: Annotated[Optional[str], Form(max_length=100)] = None,
    requirements: Annotated[Optional[str], Form(description="JSON array of strings")] = None,
    image: Annotated[Optional[UploadFile], File()] = None,
):
    """
    Create an unpublished course authored by the caller.

    Raises:
        ValidationError: 400 for malformed requirements or a non-image banner.
    """
    data = CourseBase(
        title=title,
        price=price,
        description=description,
        category=category,
        requirements=course_service.parse_requirements(requirements),
        image=await _banner_url(image, storage),
    )
    course = await course_service.create_course(current_user.id, data, db)
    return {"message": "Course created successfully", "data": course}


@router.get(
    "/{course_id}",
    response_model=Envelope[CourseListItem],
    summary="Get a course",
)
async def get_course(
    course_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    course = await course_service.get_course_with_author(course_id, db)
    return {"data": course}


@router.patch(
    "/{course_id}/update",
    response_model=Envelope[CourseResponse],
    summary="Update my course (multipart, optional banner image)",
)
async def update_my_course(
    course_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    storage: Annotated[LocalObjectStorage, Depends(get_storage)],
    title: Annotated[Optional[str], Form(min_length=1, max_length=255)] = None,
    price: Annotated[Optional[Decimal], Form(ge=0, max_digits=10, decimal_places=2)] = None,
    description: Annotated[Optional[str], Form()] = None,
    category: Annotated[Optional[str], Form(max_length=100)] = None,
    requirements: Annotated[Optional[str], Form(description="JSON array of strings")] = None,
    image: Annotated[Optional[UploadFile], File()] = None,
):
    """
    Update a course the caller authored. Only sent fields change.

    Raises:
        AuthorizationError: 403 if the caller is not the author.
    """
    fields = {
        "title": title,
        "price": price,
        "description": description,
        "category": category,
        "requirements": course_service.parse_requirements(requirements),
    }
    updates = CourseUpdate(**{k: v for k, v in fields.items() if v is not None})

    await course_service.get_authored_course(course_id, current_user, db)
    banner = await _banner_url(image, storage)
    if banner is not None:
        updates.image = banner

    course = await course_service.update_my_course(course_id, current_user, updates, db)
    return {"data": course}


@router.patch(
    "/{course_id}/publish",
    response_model=Envelope[CourseResponse],
    summary="Publish my course",
)
async def publish_course(
    course_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Raises:
        ValidationError: 400 listing the fields still missing.
    """
    course = await course_service.publish_course(course_id, current_user, db)
    return {"message": "Course published successfully", "data": course}


@router.patch(
    "/{course_id}/unpublish",
    response_model=Envelope[CourseResponse],
    summary="Unpublish my course",
)
async def unpublish_course(
    course_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    course = await course_service.unpublish_course(course_id, current_user, db)
    return {"message": "Course unpublished successfully", "data": course}


@router.post(
    "/",
    response_model=Envelope[CourseResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create a course for any author (admin)",
)
async def admin_create_course(
    course_data: AdminCourseCreate,
    _admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    course = await course_service.admin_create_course(course_data, db)
    return {"data": course}


@router.patch(
    "/{course_id}",
    response_model=Envelope[CourseResponse],
    summary="Update any course (admin)",
)
async def admin_update_course(
    course_id: int,
    course_data: AdminCourseUpdate,
    _admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    course = await course_service.admin_update_course(course_id, course_data, db)
    return {"data": course}


@router.delete(
    "/{course_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a course (admin)",
)
async def admin_delete_course(
    course_id: int,
    _admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
    storage: Annotated[LocalObjectStorage, Depends(get_storage)],
) -> None:
    """Delete a course together with its videos, progress, reviews, payments and enrollments."""
    await course_service.delete_course(course_id, db, storage)
