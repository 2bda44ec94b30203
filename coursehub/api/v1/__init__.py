"""
API v1 Router

Aggregates all v1 endpoint routers.
"""

from fastapi import APIRouter

from coursehub.api.v1.endpoints import auth, users, courses, videos, reviews, payments

router = APIRouter()

# Include authentication routes
router.include_router(auth.router)

# Include user routes
router.include_router(users.router)

# Include course routes
router.include_router(courses.router)

# Include video and progress routes
router.include_router(videos.router)

# Include review routes
router.include_router(reviews.router)

# Include payment and enrollment routes
router.include_router(payments.router)
