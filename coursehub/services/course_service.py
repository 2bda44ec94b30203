"""
Course Service

Business logic for course creation, editing and publication.
"""

import json
import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.core.config import settings
from coursehub.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from coursehub.core.storage import COURSES_BUCKET, LocalObjectStorage, unique_image_key
from coursehub.models.course import Course
from coursehub.models.user import User
from coursehub.schemas.course import (
    AdminCourseCreate,
    AdminCourseUpdate,
    CourseBase,
    CourseListItem,
    CourseResponse,
    CourseUpdate,
)


logger = logging.getLogger(__name__)

PUBLISH_REQUIRED_FIELDS = ("title", "price", "description", "image", "requirements", "category")

IMAGE_EXTENSIONS = {
    "image/jpeg": "jpeg",
    "image/jpg": "jpeg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}


def parse_requirements(raw: Optional[str]) -> Optional[List[str]]:
    """
    Parse the requirements form field, a JSON array of strings.

    Raises:
        ValidationError: If the value is not a JSON array of strings.
    """
    if raw is None or raw.strip() == "":
        return None

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError("Invalid requirements format. Please provide a valid JSON array")

    if not isinstance(parsed, list) or not all(isinstance(item, str) for item in parsed):
        raise ValidationError("Invalid requirements format. Please provide a valid JSON array")

    return parsed


def missing_publish_fields(course: Course) -> List[str]:
    """Fields that must be filled before a course can be published."""
    missing = []
    for field in PUBLISH_REQUIRED_FIELDS:
        value = getattr(course, field)
        if value is None or value == "" or value == []:
            missing.append(field)
    return missing


async def upload_image(
    storage: LocalObjectStorage,
    bucket: str,
    prefix: str,
    content: bytes,
    content_type: Optional[str],
) -> str:
    """
    Store an uploaded image and return its URL.

    Raises:
        ValidationError: If the file is not an image or is too large.
        UpstreamError: If storage fails.
    """
    if not content_type or not content_type.startswith("image/"):
        raise ValidationError("Not an image! Please upload only images.")
    if len(content) > settings.MAX_IMAGE_UPLOAD_BYTES:
        raise ValidationError("Image file is too large")

    extension = IMAGE_EXTENSIONS.get(content_type, "jpeg")
    key = unique_image_key(prefix, extension)
    return await storage.put(bucket, key, content, content_type)


async def upload_banner(
    storage: LocalObjectStorage,
    content: bytes,
    content_type: Optional[str],
) -> str:
    return await upload_image(storage, COURSES_BUCKET, "course", content, content_type)


async def get_course_by_id(
    course_id: int,
    db: AsyncSession,
) -> Course:
    """
    Get a specific course by ID.

    Raises:
        NotFoundError: If course not found.
    """
    result = await db.execute(
        select(Course).where(Course.id == course_id)
    )
    course = result.scalar_one_or_none()

    if not course:
        raise NotFoundError("No course found with that ID")

    return course


async def get_course_with_author(course_id: int, db: AsyncSession) -> CourseListItem:
    """Get a course together with its author's name."""
    result = await db.execute(
        select(Course, User.full_name)
        .outerjoin(User, User.id == Course.author_id)
        .where(Course.id == course_id)
    )
    row = result.first()

    if row is None:
        raise NotFoundError("No course found with that ID")

    course, author_name = row
    return _with_author(course, author_name)


def _with_author(course: Course, author_name: Optional[str]) -> CourseListItem:
    return CourseListItem(
        **CourseResponse.model_validate(course).model_dump(),
        author_name=author_name or "Unknown",
    )


async def get_published_courses(
    db: AsyncSession,
    page: int = 1,
    size: int = 20,
    search: Optional[str] = None,
    category: Optional[str] = None,
) -> Tuple[List[CourseListItem], int]:
    """
    Get paginated list of published courses with author names.

    Args:
        db: Database session.
        page: Page number (1-indexed).
        size: Items per page.
        search: Optional search term for title or author name.
        category: Optional exact category filter.

    Returns:
        Tuple of (courses, total_count).
    """
    base_query = (
        select(Course, User.full_name)
        .outerjoin(User, User.id == Course.author_id)
        .where(Course.published.is_(True))
    )

    if search:
        search_term = f"%{search.lower()}%"
        base_query = base_query.where(
            (func.lower(Course.title).like(search_term)) |
            (func.lower(User.full_name).like(search_term))
        )
    if category:
        base_query = base_query.where(Course.category == category)

    count_result = await db.execute(
        select(func.count()).select_from(base_query.subquery())
    )
    total = count_result.scalar() or 0

    offset = (page - 1) * size
    result = await db.execute(
        base_query
        .order_by(Course.id.desc())
        .offset(offset)
        .limit(size)
    )
    courses = [_with_author(course, name) for course, name in result.all()]

    return courses, total


async def get_author_courses(
    user: User,
    db: AsyncSession,
) -> List[Course]:
    """All courses authored by a user, published or not."""
    result = await db.execute(
        select(Course)
        .where(Course.author_id == user.id)
        .order_by(Course.id.desc())
    )
    return list(result.scalars().all())


async def create_course(
    author_id: uuid.UUID,
    data: CourseBase,
    db: AsyncSession,
) -> Course:
    """
    Create an unpublished course.

    Args:
        author_id: Owning user.
        data: Course fields.
        db: Database session.

    Returns:
        The created course.
    """
    course = Course(
        author_id=author_id,
        **data.model_dump(include=set(CourseBase.model_fields)),
    )
    db.add(course)
    await db.commit()
    await db.refresh(course)

    logger.info("Course %s created by %s", course.id, author_id)
    return course


async def admin_create_course(data: AdminCourseCreate, db: AsyncSession) -> Course:
    """
    Create a course for an explicit author.

    Raises:
        NotFoundError: If the author does not exist.
    """
    result = await db.execute(select(User.id).where(User.id == data.author_id))
    if result.scalar_one_or_none() is None:
        raise NotFoundError("Author not found")

    return await create_course(data.author_id, data, db)


def _apply_updates(course: Course, updates: Dict[str, Any]) -> None:
    if not updates:
        raise ValidationError("No valid fields to update")
    for field, value in updates.items():
        setattr(course, field, value)


async def get_authored_course(course_id: int, user: User, db: AsyncSession) -> Course:
    """
    Get a course owned by the user.

    Raises:
        NotFoundError: If the course does not exist.
        AuthorizationError: If the user is not its author.
    """
    course = await get_course_by_id(course_id, db)
    if course.author_id != user.id:
        raise AuthorizationError("You can only modify your own courses")
    return course


async def update_my_course(
    course_id: int,
    user: User,
    data: CourseUpdate,
    db: AsyncSession,
) -> Course:
    """Author edit of their own course."""
    course = await get_authored_course(course_id, user, db)
    _apply_updates(course, data.model_dump(exclude_unset=True))

    await db.commit()
    await db.refresh(course)
    return course


async def admin_update_course(
    course_id: int,
    data: AdminCourseUpdate,
    db: AsyncSession,
) -> Course:
    course = await get_course_by_id(course_id, db)
    _apply_updates(course, data.model_dump(exclude_unset=True))

    await db.commit()
    await db.refresh(course)
    return course


async def publish_course(
    course_id: int,
    user: User,
    db: AsyncSession,
) -> Course:
    """
    Publish a course (make it visible to buyers).

    Raises:
        NotFoundError: If the course does not exist.
        AuthorizationError: If the user is not its author.
        ValidationError: If required fields are still empty.
    """
    course = await get_authored_course(course_id, user, db)

    missing = missing_publish_fields(course)
    if missing:
        raise ValidationError(
            f"Cannot publish course. Please fill the following fields: {', '.join(missing)}"
        )

    course.published = True
    await db.commit()
    await db.refresh(course)

    logger.info("Course %s published", course_id)
    return course


async def unpublish_course(
    course_id: int,
    user: User,
    db: AsyncSession,
) -> Course:
    course = await get_authored_course(course_id, user, db)

    course.published = False
    await db.commit()
    await db.refresh(course)
    return course


async def delete_course(
    course_id: int,
    db: AsyncSession,
    storage: LocalObjectStorage,
) -> None:
    """
    Delete a course (admin).

    Videos, progress, reviews, payments and enrollments go with it through
    ON DELETE CASCADE. The banner file is removed afterwards if possible.
    """
    course = await get_course_by_id(course_id, db)
    image = course.image

    await db.delete(course)
    await db.commit()
    logger.info("Course %s deleted", course_id)

    key = storage.key_from_url(COURSES_BUCKET, image) if image else None
    if key:
        try:
            await storage.delete(COURSES_BUCKET, key)
        except UpstreamError as e:
            logger.warning("Could not remove banner %s: %s", key, e.detail)
