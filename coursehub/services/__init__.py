"""
CourseHub Backend - Services Module

Business logic layer.
"""

from coursehub.services import auth_service
from coursehub.services import user_service
from coursehub.services import course_service
from coursehub.services import rating_service
from coursehub.services import review_service
from coursehub.services import video_service
from coursehub.services import progress_service
from coursehub.services import enrollment_service

__all__ = [
    "auth_service",
    "user_service",
    "course_service",
    "rating_service",
    "review_service",
    "video_service",
    "progress_service",
    "enrollment_service",
]
