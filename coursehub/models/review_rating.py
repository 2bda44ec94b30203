"""
Review Rating Model

A user's rating (and optional text review) of a course.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, Numeric, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from coursehub.core.database import Base


class ReviewRating(Base):
    """
    Review/rating model.

    One review per (user, course) is enforced by the review service before
    insert; the schema has no unique constraint on the pair.

    Attributes:
        id: Integer primary key.
        user_id: Foreign key to the reviewing user.
        course_id: Foreign key to the reviewed course.
        rating: Rating between 1.0 and 5.0 inclusive.
        review: Optional review text.
    """

    __tablename__ = "review_ratings"

    __table_args__ = (
        CheckConstraint("rating >= 1.0 AND rating <= 5.0", name="ck_review_ratings_rating_range"),
    )

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    course_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("courses.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    rating: Mapped[Decimal] = mapped_column(
        Numeric(2, 1),
        nullable=False,
    )
    review: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
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
        return f"<ReviewRating(id={self.id}, course_id={self.course_id}, rating={self.rating})>"
