"""
Video Progress Model

Per-user watch state of a single video.
"""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Integer, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from coursehub.core.database import Base
from coursehub.models.enums import WatchStatus, enum_values


class VideoProgress(Base):
    """
    Video progress keyed by (user_id, video_id).

    The composite primary key is the upsert conflict target, so there is
    at most one row per pair. A missing row means not_started with 0 seconds.

    Attributes:
        user_id: Foreign key to users table.
        video_id: Foreign key to videos table.
        status: Current watch status (not_started, in_progress, completed).
        watched_seconds: Seconds watched as last reported by the client.
        updated_at: Time of the last upsert.
    """

    __tablename__ = "video_progress"

    __table_args__ = (
        CheckConstraint("watched_seconds >= 0", name="ck_video_progress_watched_non_negative"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    video_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("videos.id", ondelete="CASCADE"),
        primary_key=True,
    )
    status: Mapped[WatchStatus] = mapped_column(
        Enum(WatchStatus, name="watch_status", values_callable=enum_values, create_constraint=True),
        default=WatchStatus.NOT_STARTED,
        nullable=False,
    )
    watched_seconds: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<VideoProgress(user_id={self.user_id}, video_id={self.video_id}, status={self.status})>"
