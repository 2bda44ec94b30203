"""
Review Routes

Endpoints for course reviews and ratings.
"""

import uuid
from typing import Annotated, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.api.deps import get_current_user, require_admin
from coursehub.core.database import get_db
from coursehub.models.user import User
from coursehub.schemas.common import Envelope
from coursehub.schemas.review import (
    CourseRatingStats,
    CourseReviewList,
    ReviewCreate,
    ReviewResponse,
    ReviewUpdate,
    UserReviewItem,
)
from coursehub.services import review_service


router = APIRouter(prefix="/reviews", tags=["Reviews"])


@router.get(
    "/course/{course_id}",
    response_model=Envelope[CourseReviewList],
    summary="List a course's reviews",
)
async def list_course_reviews(
    course_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Reviews with reviewer names and the average computed from them."""
    reviews = await review_service.list_course_reviews(course_id, db)
    return {"results": len(reviews.reviews), "data": reviews}


@router.get(
    "/course/{course_id}/stats",
    response_model=Envelope[CourseRatingStats],
    summary="Rating statistics of a course",
)
async def course_stats(
    course_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    stats = await review_service.get_course_rating_stats(course_id, db)
    return {"data": stats}


@router.get(
    "/user/{user_id}",
    response_model=Envelope[List[UserReviewItem]],
    summary="List a user's reviews",
)
async def list_user_reviews(
    user_id: uuid.UUID,
    _current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    reviews = await review_service.list_user_reviews(user_id, db)
    return {"results": len(reviews), "data": reviews}


@router.get(
    "/myreviews",
    response_model=Envelope[List[UserReviewItem]],
    summary="List my reviews",
)
async def my_reviews(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    reviews = await review_service.list_user_reviews(current_user.id, db)
    return {"results": len(reviews), "data": reviews}


@router.get(
    "/admin/all",
    response_model=Envelope[List[ReviewResponse]],
    summary="List all reviews (admin)",
)
async def list_all_reviews(
    _admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    reviews = await review_service.list_all_reviews(db)
    return {"results": len(reviews), "data": reviews}


@router.delete(
    "/admin/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete any review (admin)",
)
async def admin_delete_review(
    review_id: int,
    admin: Annotated[User, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> None:
    await review_service.delete_review(review_id, admin, db)


@router.post(
    "/",
    response_model=Envelope[ReviewResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Review a course",
)
async def create_review(
    data: ReviewCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Create the caller's review of a course and refresh the course rating.

    Raises:
        ValidationError: 400 if the rating is outside 1.0 to 5.0.
        BusinessRuleError: 400 if the caller already reviewed the course.
        NotFoundError: 404 if the course does not exist.
    """
    review = await review_service.create_review(current_user, data, db)
    return {"message": "Review created successfully", "data": review}


@router.get(
    "/{review_id}",
    response_model=Envelope[ReviewResponse],
    summary="Get a review",
)
async def get_review(
    review_id: int,
    _current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    review = await review_service.get_review(review_id, db)
    return {"data": review}


@router.patch(
    "/{review_id}",
    response_model=Envelope[ReviewResponse],
    summary="Update my review",
)
async def update_review(
    review_id: int,
    data: ReviewUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """
    Raises:
        AuthorizationError: 403 if the review belongs to someone else.
    """
    review = await review_service.update_review(review_id, current_user, data, db)
    return {"message": "Review updated successfully", "data": review}


@router.delete(
    "/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete my review",
)
async def delete_review(
    review_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> None:
    await review_service.delete_review(review_id, current_user, db)
