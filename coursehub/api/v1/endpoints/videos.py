"""
Video Routes

Endpoints for course videos, their order and per-user watch progress.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.api.deps import get_current_user, get_current_user_optional, require_admin
from coursehub.core.config import settings
from coursehub.core.database import get_db
from coursehub.core.storage import LocalObjectStorage, get_storage
from coursehub.models.user import User
from coursehub.schemas.common import Envelope
from coursehub.schemas.progress import ProgressResponse, ProgressUpdate
from coursehub.schemas.video import (
    ReorderRequest,
    ReorderResult,
    VideoCreate,
    VideoResponse,
    VideoUpdate,
    VideoWithProgress,
)
from coursehub.services import progress_service, video_service


router = APIRouter(prefix="/videos", tags=["Videos"])


@router.get(
    "/course/{course_id}",
    response_model=Envelope[List[VideoResponse]],
    summary="List a course's videos in order",
)
async def list_course_videos(
    course_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Videos sorted by ascending order_index."""
    videos = await video_service.list_course_videos(course_id, db)
    return {"results": len(videos), "data": videos}


@router.get(
    "/course/{course_id}/progress",
    response_model=Envelope[List[VideoWithProgress]],
    summary="List a course's videos with my progress",
)
async def list_course_videos_with_progress(
    course_id: int,
    current_user: Annotated[Optional[User], Depends(get_current_user_optional)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Every video of the course with the caller's progress.

    Anonymous callers, and videos never watched, get not_started with 0 seconds.
    """
    videos = await progress_service.list_course_videos_with_progress(
        course_id,
        current_user.id if current_user else None,
        db,
    )
    return {"results": len(videos), "data": videos}


@router.post(
    "/upload",
    response_model=Envelope[VideoResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Upload a video to my course",
)
async def upload_video(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    storage: Annotated[LocalObjectStorage, Depends(get_storage)],
    course_id: Annotated[int, Form()],
    duration_seconds: Annotated[int, Form(gt=0)],
    video: Annotated[UploadFile, File()],
    title: Annotated[Optional[str], Form(max_length=500)] = None,
):
    """
    Upload a video file and append it to the end of the course.

    The title defaults to the file name without its extension.

    Raises:
        ValidationError: 400 for a non-video or oversized file.
        AuthorizationError: 403 if the caller is not the course author.
    """
    # One byte over the cap is enough to reject the upload
    content = await video.read(settings.MAX_VIDEO_UPLOAD_BYTES + 1)
    created = await video_service.append_video(
        course_id,
        current_user,
        content,
        video.filename,
        video.content_type,
        duration_seconds,
        db,
        storage,
        title=title,
    )
    return {"message": "Video uploaded successfully", "data": created}


@router.patch(
    "/reorder/{course_id}",
    response_model=Envelope[ReorderResult],
    summary="Reorder the videos of my course",
)
async def reorder_videos(
    course_id: int,
    data: ReorderRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Apply several (video_id, order_index) pairs at once.

    Raises:
        ValidationError: 400 for repeated ids or indexes.
        AuthorizationError: 403 if the caller is not the course author.
        PartialFailureError: 500 with the applied and failed video ids when
            only some updates went through.
    """
    result = await video_service.reorder_videos(course_id, data.video_orders, current_user, db)
    return {"message": "Videos reordered successfully", "data": result}


@router.put(
    "/{video_id}/progress",
    response_model=Envelope[ProgressResponse],
    summary="Report my progress on a video",
)
async def update_progress(
    video_id: int,
    data: ProgressUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Insert or overwrite the caller's progress row for this video.

    A missing status is stored as in_progress and missing watched_seconds
    as 0.
    """
    progress = await progress_service.upsert_progress(current_user.id, video_id, data, db)
    return {"data": progress}


@router.get(
    "/",
    response_model=Envelope[List[VideoResponse]],
    summary="List all videos (admin)",
)
async def list_videos(
    _admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    videos = await video_service.list_all_videos(db)
    return {"results": len(videos), "data": videos}


@router.post(
    "/",
    response_model=Envelope[VideoResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Register a stored video (admin)",
)
async def create_video(
    data: VideoCreate,
    _admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    video = await video_service.create_video(data, db)
    return {"data": video}


@router.get(
    "/{video_id}",
    response_model=Envelope[VideoResponse],
    summary="Get a video (admin)",
)
async def get_video(
    video_id: int,
    _admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    video = await video_service.get_video(video_id, db)
    return {"data": video}


@router.patch(
    "/{video_id}",
    response_model=Envelope[VideoResponse],
    summary="Update a video (admin)",
)
async def update_video(
    video_id: int,
    data: VideoUpdate,
    _admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    video = await video_service.update_video(video_id, data, db)
    return {"data": video}


@router.delete(
    "/{video_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a video (admin)",
)
async def delete_video(
    video_id: int,
    _admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
    storage: Annotated[LocalObjectStorage, Depends(get_storage)],
) -> None:
    """Delete the video row, then its stored file when possible."""
    await video_service.delete_video(video_id, db, storage)
