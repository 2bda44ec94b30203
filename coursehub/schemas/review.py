"""
Review Schemas

Pydantic models for review/rating request/response validation.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    """Schema for creating a review. The rating range is checked by the service."""

    course_id: int
    rating: Decimal = Field(..., max_digits=2, decimal_places=1)
    review: Optional[str] = None


class ReviewUpdate(BaseModel):
    """Schema for updating a review. At least one field is required."""

    rating: Optional[Decimal] = Field(None, max_digits=2, decimal_places=1)
    review: Optional[str] = None


class ReviewResponse(BaseModel):
    """Schema for review response."""

    id: int
    user_id: uuid.UUID
    course_id: int
    rating: Decimal
    review: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CourseReviewItem(ReviewResponse):
    """Review shown on a course page, with the reviewer's name."""

    user_name: Optional[str] = None


class UserReviewItem(ReviewResponse):
    """Review shown in a user's history, with the course title."""

    course_title: Optional[str] = None


class CourseReviewList(BaseModel):
    """Reviews of a course and their live average."""

    average_rating: Decimal
    reviews: List[CourseReviewItem]


class CourseRatingStats(BaseModel):
    """Rating statistics computed from the review rows."""

    total_reviews: int
    average_rating: Decimal
    rating_distribution: Dict[int, int]
