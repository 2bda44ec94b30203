"""
Progress Schemas

Pydantic models for video progress tracking.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from coursehub.models.enums import WatchStatus


class ProgressUpdate(BaseModel):
    """
    Schema for reporting progress on a video.

    At least one field must be given. A missing status is stored as
    in_progress and missing watched_seconds as 0.
    """

    status: Optional[WatchStatus] = Field(None, description="New watch status")
    watched_seconds: Optional[int] = Field(None, ge=0, description="Total seconds watched")


class ProgressState(BaseModel):
    """Progress as seen in video listings."""

    status: WatchStatus = WatchStatus.NOT_STARTED
    watched_seconds: int = 0
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ProgressResponse(ProgressState):
    """Schema for a stored progress row."""

    user_id: uuid.UUID
    video_id: int
