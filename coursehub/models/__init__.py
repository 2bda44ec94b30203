"""
CourseHub Backend - Models Module

This module exports all SQLAlchemy models for the application.
Import Base for Alembic migrations.
"""

from coursehub.core.database import Base

# Enums
from coursehub.models.enums import (
    UserRole,
    WatchStatus,
    PaymentStatus,
)

# Models
from coursehub.models.user import User
from coursehub.models.course import Course
from coursehub.models.video import Video
from coursehub.models.video_progress import VideoProgress
from coursehub.models.review_rating import ReviewRating
from coursehub.models.payment import Payment
from coursehub.models.enrollment import Enrollment

__all__ = [
    # Base
    "Base",
    # Enums
    "UserRole",
    "WatchStatus",
    "PaymentStatus",
    # Models
    "User",
    "Course",
    "Video",
    "VideoProgress",
    "ReviewRating",
    "Payment",
    "Enrollment",
]
