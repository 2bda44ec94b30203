"""
Progress Service

Per-user watch progress on course videos.
"""

import uuid
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.core.exceptions import NotFoundError, ValidationError
from coursehub.models.enums import WatchStatus
from coursehub.models.video import Video
from coursehub.models.video_progress import VideoProgress
from coursehub.schemas.progress import ProgressState, ProgressUpdate
from coursehub.schemas.video import VideoResponse, VideoWithProgress
from coursehub.services.video_service import list_course_videos


def resolve_progress_fields(data: ProgressUpdate) -> Tuple[WatchStatus, int]:
    """
    Fill in the fields a progress report left out.

    The stored row is replaced as a whole, so a missing status becomes
    in_progress and missing watched_seconds becomes 0 even if the row
    previously held other values.

    Raises:
        ValidationError: If neither field was given.
    """
    if data.status is None and data.watched_seconds is None:
        raise ValidationError("Please provide status or watched_seconds")

    status = data.status if data.status is not None else WatchStatus.IN_PROGRESS
    watched_seconds = data.watched_seconds if data.watched_seconds is not None else 0
    return status, watched_seconds


def build_upsert(
    user_id: uuid.UUID,
    video_id: int,
    status: WatchStatus,
    watched_seconds: int,
):
    """INSERT ... ON CONFLICT (user_id, video_id) DO UPDATE, returning the row."""
    stmt = insert(VideoProgress).values(
        user_id=user_id,
        video_id=video_id,
        status=status,
        watched_seconds=watched_seconds,
    )
    return stmt.on_conflict_do_update(
        index_elements=[VideoProgress.user_id, VideoProgress.video_id],
        set_={
            "status": stmt.excluded.status,
            "watched_seconds": stmt.excluded.watched_seconds,
            "updated_at": func.now(),
        },
    ).returning(VideoProgress)


async def upsert_progress(
    user_id: uuid.UUID,
    video_id: int,
    data: ProgressUpdate,
    db: AsyncSession,
) -> VideoProgress:
    """
    Record a user's progress on a video.

    Inserts the (user, video) row or overwrites it in place, so there is
    never more than one row per pair.

    Args:
        user_id: Watching user.
        video_id: Watched video.
        data: Reported status and/or watched seconds.
        db: Database session.

    Returns:
        The stored progress row.

    Raises:
        ValidationError: If neither field was given.
        NotFoundError: If the video does not exist.
    """
    status, watched_seconds = resolve_progress_fields(data)

    result = await db.execute(select(Video.id).where(Video.id == video_id))
    if result.scalar_one_or_none() is None:
        raise NotFoundError("Video not found")

    stmt = build_upsert(user_id, video_id, status, watched_seconds)
    result = await db.execute(
        select(VideoProgress).from_statement(stmt).execution_options(populate_existing=True)
    )
    progress = result.scalar_one()
    await db.commit()

    return progress


def merge_progress(
    videos: Iterable[Video],
    progress_by_video: Dict[int, VideoProgress],
) -> List[VideoWithProgress]:
    """
    Attach progress to each video, defaulting to not_started/0.

    Every video is kept whether or not it has a progress row.
    """
    merged = []
    for video in videos:
        row = progress_by_video.get(video.id)
        state = ProgressState.model_validate(row) if row is not None else ProgressState()
        merged.append(
            VideoWithProgress(
                **VideoResponse.model_validate(video).model_dump(),
                progress=state,
            )
        )
    return merged


async def list_course_videos_with_progress(
    course_id: int,
    user_id: Optional[uuid.UUID],
    db: AsyncSession,
) -> List[VideoWithProgress]:
    """
    Videos of a course in order, each with the user's progress.

    Without a user every video reports the not_started default.
    """
    videos = await list_course_videos(course_id, db)

    progress_by_video: Dict[int, VideoProgress] = {}
    if user_id is not None and videos:
        result = await db.execute(
            select(VideoProgress).where(
                VideoProgress.user_id == user_id,
                VideoProgress.video_id.in_([video.id for video in videos]),
            )
        )
        progress_by_video = {row.video_id: row for row in result.scalars().all()}

    return merge_progress(videos, progress_by_video)
