"""
Course Model

A purchasable course owned by its author.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from coursehub.core.database import Base


class Course(Base):
    """
    Course model.

    `review_count` and `average_rating` are a cache of the course's
    review_ratings rows, rewritten by the rating aggregator after every
    review write. They can lag behind the reviews if a recompute fails.

    Attributes:
        id: Integer primary key.
        title: Course title.
        price: Price in major currency units (>= 0).
        author_id: Foreign key to the authoring user.
        description: Long description.
        image: Banner URL.
        requirements: Ordered list of prerequisite strings.
        category: Free-form category label.
        published: Whether the course is publicly listed.
        review_count: Number of reviews (cached).
        average_rating: Mean rating rounded to one decimal, 0 with no reviews (cached).
    """

    __tablename__ = "courses"

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_courses_price_non_negative"),
        CheckConstraint("review_count >= 0", name="ck_courses_review_count_non_negative"),
    )

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    image: Mapped[Optional[str]] = mapped_column(
        String(512),
        nullable=True,
    )
    requirements: Mapped[Optional[List[str]]] = mapped_column(
        JSONB,
        nullable=True,
    )
    category: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    published: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    review_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    average_rating: Mapped[Decimal] = mapped_column(
        Numeric(2, 1),
        default=Decimal("0"),
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
        return f"<Course(id={self.id}, title={self.title[:30]})>"
