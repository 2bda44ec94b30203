"""
Video Service

Video uploads, ordinal positions within a course, and bulk reordering.

Positions are gap-tolerant: a new video goes to max(order_index) + 1, or 0
for an empty course. The max is read without locking, so two concurrent
uploads to one course can receive the same index.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.core.config import settings
from coursehub.core.database import get_session_maker
from coursehub.core.exceptions import (
    NotFoundError,
    PartialFailureError,
    UpstreamError,
    ValidationError,
)
from coursehub.core.storage import COURSES_BUCKET, LocalObjectStorage, sanitize_filename
from coursehub.models.user import User
from coursehub.models.video import Video
from coursehub.schemas.video import ReorderResult, VideoCreate, VideoOrder, VideoUpdate
from coursehub.services.course_service import get_authored_course, get_course_by_id


logger = logging.getLogger(__name__)

STORE_ERRORS = (SQLAlchemyError, OSError)


async def get_video(video_id: int, db: AsyncSession) -> Video:
    """
    Get a video by ID.

    Raises:
        NotFoundError: If the video does not exist.
    """
    result = await db.execute(select(Video).where(Video.id == video_id))
    video = result.scalar_one_or_none()

    if not video:
        raise NotFoundError("Video not found")

    return video


async def next_order_index(course_id: int, db: AsyncSession) -> int:
    """
    Position for a video appended to a course.

    Returns:
        Highest existing order_index + 1, or 0 if the course has no videos.
    """
    result = await db.execute(
        select(Video.order_index)
        .where(Video.course_id == course_id)
        .order_by(Video.order_index.desc())
        .limit(1)
    )
    current_max = result.scalar_one_or_none()
    return 0 if current_max is None else current_max + 1


async def list_course_videos(course_id: int, db: AsyncSession) -> List[Video]:
    """
    Videos of a course in ascending order_index.

    Rows sharing an index come back in id order.
    """
    result = await db.execute(
        select(Video)
        .where(Video.course_id == course_id)
        .order_by(Video.order_index.asc(), Video.id.asc())
    )
    return list(result.scalars().all())


async def list_all_videos(db: AsyncSession) -> List[Video]:
    result = await db.execute(
        select(Video).order_by(Video.course_id, Video.order_index, Video.id)
    )
    return list(result.scalars().all())


def video_object_key(course_id: int, title: str) -> str:
    """Storage key for an uploaded video file."""
    millis = int(time.time() * 1000)
    return f"{course_id}/{sanitize_filename(title)}-{millis}.mp4"


async def append_video(
    course_id: int,
    user: User,
    content: bytes,
    filename: Optional[str],
    content_type: Optional[str],
    duration_seconds: int,
    db: AsyncSession,
    storage: LocalObjectStorage,
    title: Optional[str] = None,
) -> Video:
    """
    Upload a video file and append it to the end of a course.

    Args:
        course_id: Target course.
        user: Uploader; must be the course author.
        content: Raw file bytes.
        filename: Client file name, used as the default title.
        content_type: Client-declared MIME type; must be video/*.
        duration_seconds: Client-reported duration.
        db: Database session.
        storage: Object storage for the file.
        title: Optional display title.

    Returns:
        The stored Video.

    Raises:
        ValidationError: For a non-video file, an empty or oversized file,
            or a non-positive duration.
        NotFoundError: If the course does not exist.
        AuthorizationError: If the user is not the course author.
        UpstreamError: If storing the file or the row fails.
    """
    if not content_type or not content_type.startswith("video/"):
        raise ValidationError("Only video files are allowed")
    if not content:
        raise ValidationError("Please upload a video file")
    if len(content) > settings.MAX_VIDEO_UPLOAD_BYTES:
        raise ValidationError("Video file is too large")
    if duration_seconds <= 0:
        raise ValidationError("duration_seconds must be greater than 0")

    await get_authored_course(course_id, user, db)

    video_title = (title or "").strip() or Path(filename or "video").stem
    key = video_object_key(course_id, video_title)
    url = await storage.put(COURSES_BUCKET, key, content, content_type)

    try:
        video = Video(
            course_id=course_id,
            title=video_title,
            duration_seconds=duration_seconds,
            url=url,
            order_index=await next_order_index(course_id, db),
        )
        db.add(video)
        await db.commit()
        await db.refresh(video)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Failed to save video row for %s: %s", key, e)
        await _discard_blob(storage, key)
        raise UpstreamError("Failed to save video")

    logger.info("Video %s appended to course %s at index %s", video.id, course_id, video.order_index)
    return video


async def ensure_order_index_free(
    course_id: int,
    order_index: int,
    db: AsyncSession,
    exclude_video_id: Optional[int] = None,
) -> None:
    """
    Reject an explicit position another video of the course already holds.

    Raises:
        ValidationError: If the index is taken.
    """
    query = select(Video.id).where(
        Video.course_id == course_id,
        Video.order_index == order_index,
    )
    if exclude_video_id is not None:
        query = query.where(Video.id != exclude_video_id)
    result = await db.execute(query.limit(1))
    if result.scalar_one_or_none() is not None:
        raise ValidationError(f"order_index {order_index} is already used in this course")


async def create_video(data: VideoCreate, db: AsyncSession) -> Video:
    """
    Register an already-stored video (admin).

    A missing order_index appends the video to the end of the course; an
    explicit one must not be held by another video of the course.
    """
    await get_course_by_id(data.course_id, db)

    order_index = data.order_index
    if order_index is None:
        order_index = await next_order_index(data.course_id, db)
    else:
        await ensure_order_index_free(data.course_id, order_index, db)

    video = Video(
        course_id=data.course_id,
        title=data.title,
        duration_seconds=data.duration_seconds,
        url=data.url,
        order_index=order_index,
    )
    db.add(video)
    await db.commit()
    await db.refresh(video)
    return video


async def update_video(video_id: int, data: VideoUpdate, db: AsyncSession) -> Video:
    """Apply a partial update to a video (admin)."""
    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        raise ValidationError("No valid fields to update")

    video = await get_video(video_id, db)
    if "order_index" in updates and updates["order_index"] != video.order_index:
        await ensure_order_index_free(video.course_id, updates["order_index"], db, exclude_video_id=video.id)

    for field, value in updates.items():
        setattr(video, field, value)

    await db.commit()
    await db.refresh(video)
    return video


async def delete_video(
    video_id: int,
    db: AsyncSession,
    storage: LocalObjectStorage,
) -> None:
    """Delete a video row, then its stored file (best effort)."""
    video = await get_video(video_id, db)
    url = video.url

    await db.delete(video)
    await db.commit()

    key = storage.key_from_url(COURSES_BUCKET, url)
    if key:
        await _discard_blob(storage, key)


async def _discard_blob(storage: LocalObjectStorage, key: str) -> None:
    try:
        await storage.delete(COURSES_BUCKET, key)
    except UpstreamError as e:
        logger.warning("Could not remove stored video %s: %s", key, e.detail)


def validate_reorder(video_orders: Sequence[VideoOrder]) -> None:
    """
    Reject a reorder request before anything is written.

    Raises:
        ValidationError: On an empty request, a repeated video id or
            order_index, or a negative order_index.
    """
    if not video_orders:
        raise ValidationError("Please provide video_orders")

    video_ids = [item.video_id for item in video_orders]
    if len(set(video_ids)) != len(video_ids):
        raise ValidationError("Each video may appear only once")

    indexes = [item.order_index for item in video_orders]
    if any(index < 0 for index in indexes):
        raise ValidationError("order_index must be >= 0")
    if len(set(indexes)) != len(indexes):
        raise ValidationError("order_index values must be unique")


async def _apply_order(
    session_factory: Callable,
    course_id: int,
    item: VideoOrder,
) -> int:
    async with session_factory() as session:
        result = await session.execute(
            update(Video)
            .where(Video.id == item.video_id, Video.course_id == course_id)
            .values(order_index=item.order_index)
        )
        await session.commit()
        return result.rowcount


async def reorder_videos(
    course_id: int,
    video_orders: Sequence[VideoOrder],
    user: User,
    db: AsyncSession,
    session_factory: Optional[Callable] = None,
) -> ReorderResult:
    """
    Set the order_index of several videos of a course at once.

    Each pair is applied as its own update, scoped to the course, in its
    own session, and all of them run concurrently. Updates that succeed
    stay applied even when others fail.

    Args:
        course_id: Course being reordered.
        video_orders: (video_id, order_index) pairs.
        user: Caller; must be the course author.
        db: Request session, used for the ownership check.
        session_factory: Creates the per-update sessions.

    Returns:
        ReorderResult with the applied video ids and the ids that matched
        no video of this course.

    Raises:
        ValidationError: If the request is malformed.
        NotFoundError: If the course does not exist.
        AuthorizationError: If the user is not the course author.
        PartialFailureError: If some updates were applied and others failed.
        UpstreamError: If every update failed.
    """
    validate_reorder(video_orders)
    await get_authored_course(course_id, user, db)

    factory = session_factory or get_session_maker()
    outcomes = await asyncio.gather(
        *(_apply_order(factory, course_id, item) for item in video_orders),
        return_exceptions=True,
    )

    updated: List[int] = []
    unmatched: List[int] = []
    failed: List[int] = []
    for item, outcome in zip(video_orders, outcomes):
        if isinstance(outcome, STORE_ERRORS):
            logger.error("Reorder of video %s in course %s failed: %s", item.video_id, course_id, outcome)
            failed.append(item.video_id)
        elif isinstance(outcome, BaseException):
            raise outcome
        elif outcome:
            updated.append(item.video_id)
        else:
            unmatched.append(item.video_id)

    if failed and updated:
        logger.error(
            "Course %s reorder partially applied: applied=%s failed=%s",
            course_id, updated, failed,
        )
        raise PartialFailureError(
            "Video order was only partially updated",
            applied=updated,
            failed=failed,
        )
    if failed:
        raise UpstreamError("Failed to update video order")

    logger.info("Course %s reordered: %d updated, %d unmatched", course_id, len(updated), len(unmatched))
    return ReorderResult(updated=updated, unmatched=unmatched)
