"""
Course Schemas

Pydantic models for course request/response validation.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class CourseBase(BaseModel):
    """Editable course fields."""

    title: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    description: Optional[str] = None
    image: Optional[str] = None
    requirements: Optional[List[str]] = None
    category: Optional[str] = Field(None, max_length=100)


class AdminCourseCreate(CourseBase):
    """Schema for an admin creating a course on behalf of an author."""

    author_id: uuid.UUID = Field(..., description="Authoring user")


class CourseUpdate(BaseModel):
    """Partial course update. Rating caches are not writable."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    description: Optional[str] = None
    image: Optional[str] = None
    requirements: Optional[List[str]] = None
    category: Optional[str] = Field(None, max_length=100)


class AdminCourseUpdate(CourseUpdate):
    """Admin update, which may also toggle publication."""

    published: Optional[bool] = None


class CourseResponse(BaseModel):
    """Schema for course response."""

    id: int
    title: str
    price: Decimal
    author_id: uuid.UUID
    description: Optional[str] = None
    image: Optional[str] = None
    requirements: Optional[List[str]] = None
    category: Optional[str] = None
    published: bool
    review_count: int
    average_rating: Decimal
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CourseListItem(CourseResponse):
    """Published course with its author's display name."""

    author_name: str = "Unknown"
