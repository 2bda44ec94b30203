"""
Video Schemas

Pydantic models for video request/response validation.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from coursehub.schemas.progress import ProgressState


class VideoCreate(BaseModel):
    """Schema for an admin registering an already-stored video."""

    course_id: int
    title: str = Field(..., min_length=1, max_length=500)
    duration_seconds: int = Field(..., gt=0)
    url: str = Field(..., min_length=1, max_length=1024)
    order_index: Optional[int] = Field(
        None, ge=0, description="Defaults to the next free index in the course"
    )


class VideoUpdate(BaseModel):
    """Partial video update."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    duration_seconds: Optional[int] = Field(None, gt=0)
    url: Optional[str] = Field(None, min_length=1, max_length=1024)
    order_index: Optional[int] = Field(None, ge=0)


class VideoResponse(BaseModel):
    """Schema for video response."""

    id: int
    course_id: int
    title: str
    duration_seconds: int
    url: str
    order_index: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class VideoWithProgress(VideoResponse):
    """Video joined with the caller's progress (defaulted when absent)."""

    progress: ProgressState


class VideoOrder(BaseModel):
    """One (video, position) pair of a reorder request."""

    video_id: int
    order_index: int


class ReorderRequest(BaseModel):
    """Schema for a bulk reorder request."""

    video_orders: List[VideoOrder] = Field(..., min_length=1)


class ReorderResult(BaseModel):
    """Outcome of a fully applied reorder."""

    updated: List[int]
    unmatched: List[int] = Field(
        default_factory=list,
        description="Video ids that are not in this course; nothing was written for them",
    )
