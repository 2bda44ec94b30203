"""
Video Model

Individual video within a course playlist.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from coursehub.core.database import Base


class Video(Base):
    """
    Video model representing individual videos in a course.

    `order_index` only orders videos within their course. Gaps are allowed
    and there is no unique constraint: a bulk reorder applies its updates
    independently, so two rows can transiently share an index.

    Attributes:
        id: Integer primary key.
        course_id: Foreign key to courses table.
        title: Video title.
        duration_seconds: Video duration in seconds (> 0).
        url: Public URL of the stored video file.
        order_index: Position within the course (>= 0).
    """

    __tablename__ = "videos"

    __table_args__ = (
        CheckConstraint("duration_seconds > 0", name="ck_videos_duration_positive"),
        CheckConstraint("order_index >= 0", name="ck_videos_order_index_non_negative"),
        Index("ix_videos_course_order", "course_id", "order_index"),
    )

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    course_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )
    duration_seconds: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    url: Mapped[str] = mapped_column(
        String(1024),
        nullable=False,
    )
    order_index: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Video(id={self.id}, course_id={self.course_id}, order_index={self.order_index})>"
