"""
CourseHub Backend - Schemas Module

Pydantic models for request/response validation.
"""

from coursehub.schemas.common import Envelope, ErrorEnvelope
from coursehub.schemas.user import (
    UserCreate,
    AdminUserCreate,
    AdminUserUpdate,
    UserResponse,
    UserLogin,
)
from coursehub.schemas.token import Token, TokenPayload
from coursehub.schemas.course import (
    CourseBase,
    AdminCourseCreate,
    CourseUpdate,
    AdminCourseUpdate,
    CourseResponse,
    CourseListItem,
)
from coursehub.schemas.video import (
    VideoCreate,
    VideoUpdate,
    VideoResponse,
    VideoWithProgress,
    ReorderRequest,
    ReorderResult,
)
from coursehub.schemas.progress import ProgressUpdate, ProgressState, ProgressResponse
from coursehub.schemas.review import (
    ReviewCreate,
    ReviewUpdate,
    ReviewResponse,
    CourseRatingStats,
)
from coursehub.schemas.payment import (
    CheckoutSessionResponse,
    VerifyPaymentRequest,
    PaymentResponse,
    EnrollmentResponse,
    ConfirmationResponse,
)

__all__ = [
    # Envelope
    "Envelope",
    "ErrorEnvelope",
    # User
    "UserCreate",
    "AdminUserCreate",
    "AdminUserUpdate",
    "UserResponse",
    "UserLogin",
    # Token
    "Token",
    "TokenPayload",
    # Course
    "CourseBase",
    "AdminCourseCreate",
    "CourseUpdate",
    "AdminCourseUpdate",
    "CourseResponse",
    "CourseListItem",
    # Video
    "VideoCreate",
    "VideoUpdate",
    "VideoResponse",
    "VideoWithProgress",
    "ReorderRequest",
    "ReorderResult",
    # Progress
    "ProgressUpdate",
    "ProgressState",
    "ProgressResponse",
    # Review
    "ReviewCreate",
    "ReviewUpdate",
    "ReviewResponse",
    "CourseRatingStats",
    # Payment
    "CheckoutSessionResponse",
    "VerifyPaymentRequest",
    "PaymentResponse",
    "EnrollmentResponse",
    "ConfirmationResponse",
]
