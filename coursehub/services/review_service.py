"""
Review Service

Business logic for course reviews. Every successful write is followed by a
rating recompute on the review's course.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from coursehub.core.exceptions import (
    AuthorizationError,
    BusinessRuleError,
    NotFoundError,
    ValidationError,
)
from coursehub.models.course import Course
from coursehub.models.review_rating import ReviewRating
from coursehub.models.user import User
from coursehub.schemas.review import (
    CourseRatingStats,
    CourseReviewItem,
    CourseReviewList,
    ReviewCreate,
    ReviewResponse,
    ReviewUpdate,
    UserReviewItem,
)
from coursehub.services import rating_service


logger = logging.getLogger(__name__)


async def get_review(review_id: int, db: AsyncSession) -> ReviewRating:
    """
    Get a review by ID.

    Raises:
        NotFoundError: If the review does not exist.
    """
    result = await db.execute(
        select(ReviewRating).where(ReviewRating.id == review_id)
    )
    review = result.scalar_one_or_none()

    if not review:
        raise NotFoundError("No review found with that ID")

    return review


async def create_review(
    user: User,
    data: ReviewCreate,
    db: AsyncSession,
) -> ReviewRating:
    """
    Create a review for a course.

    Args:
        user: Reviewer.
        data: Course, rating and optional text.
        db: Database session.

    Returns:
        The stored review.

    Raises:
        ValidationError: If the rating is out of range.
        NotFoundError: If the course does not exist.
        BusinessRuleError: If the user already reviewed this course.
    """
    rating = rating_service.validate_rating(data.rating)

    result = await db.execute(select(Course.id).where(Course.id == data.course_id))
    if result.scalar_one_or_none() is None:
        raise NotFoundError("Course not found")

    if await find_user_review(user.id, data.course_id, db) is not None:
        raise BusinessRuleError("You have already reviewed this course")

    review = ReviewRating(
        user_id=user.id,
        course_id=data.course_id,
        rating=rating,
        review=data.review,
    )
    db.add(review)
    await db.commit()
    await db.refresh(review)

    logger.info("User %s reviewed course %s (%s)", user.id, data.course_id, rating)
    await rating_service.recompute(data.course_id)

    return review


async def update_review(
    review_id: int,
    user: User,
    data: ReviewUpdate,
    db: AsyncSession,
) -> ReviewRating:
    """
    Update the caller's own review.

    The course rating is recomputed only when the rating value changed.

    Raises:
        ValidationError: If nothing is being updated or the rating is out of range.
        NotFoundError: If the review does not exist.
        AuthorizationError: If the caller does not own the review.
    """
    fields = data.model_fields_set
    if "rating" not in fields and "review" not in fields:
        raise ValidationError("No valid fields to update")

    new_rating = None
    if "rating" in fields:
        new_rating = rating_service.validate_rating(data.rating)

    review = await get_review(review_id, db)
    if review.user_id != user.id:
        raise AuthorizationError("You can only update your own reviews")

    rating_changed = new_rating is not None and new_rating != review.rating
    if new_rating is not None:
        review.rating = new_rating
    if "review" in fields:
        review.review = data.review

    course_id = review.course_id
    await db.commit()
    await db.refresh(review)

    if rating_changed:
        await rating_service.recompute(course_id)

    return review


async def delete_review(
    review_id: int,
    user: User,
    db: AsyncSession,
) -> None:
    """
    Delete a review. Owners may delete their own; admins may delete any.

    Raises:
        NotFoundError: If the review does not exist.
        AuthorizationError: If the caller is neither owner nor admin.
    """
    review = await get_review(review_id, db)
    if review.user_id != user.id and not user.is_admin:
        raise AuthorizationError("You can only delete your own reviews")

    course_id = review.course_id
    await db.delete(review)
    await db.commit()

    logger.info("Review %s on course %s deleted by %s", review_id, course_id, user.id)
    await rating_service.recompute(course_id)


async def list_course_reviews(course_id: int, db: AsyncSession) -> CourseReviewList:
    """Reviews of a course, newest first, with reviewer names and the live average."""
    result = await db.execute(
        select(ReviewRating, User.full_name)
        .outerjoin(User, User.id == ReviewRating.user_id)
        .where(ReviewRating.course_id == course_id)
        .order_by(ReviewRating.created_at.desc())
    )
    rows = result.all()

    _, average = rating_service.summarize_ratings(review.rating for review, _ in rows)
    reviews = [
        CourseReviewItem(
            **ReviewResponse.model_validate(review).model_dump(),
            user_name=full_name,
        )
        for review, full_name in rows
    ]
    return CourseReviewList(average_rating=average, reviews=reviews)


async def list_user_reviews(user_id, db: AsyncSession) -> List[UserReviewItem]:
    """Reviews written by a user, newest first, with course titles."""
    result = await db.execute(
        select(ReviewRating, Course.title)
        .outerjoin(Course, Course.id == ReviewRating.course_id)
        .where(ReviewRating.user_id == user_id)
        .order_by(ReviewRating.created_at.desc())
    )
    return [
        UserReviewItem(
            **ReviewResponse.model_validate(review).model_dump(),
            course_title=title,
        )
        for review, title in result.all()
    ]


async def list_all_reviews(db: AsyncSession) -> List[ReviewRating]:
    result = await db.execute(
        select(ReviewRating).order_by(ReviewRating.created_at.desc())
    )
    return list(result.scalars().all())


async def get_course_rating_stats(
    course_id: int,
    db: AsyncSession,
) -> CourseRatingStats:
    """
    Rating statistics computed from the review rows, not the cached columns.

    Raises:
        NotFoundError: If the course does not exist.
    """
    result = await db.execute(select(Course.id).where(Course.id == course_id))
    if result.scalar_one_or_none() is None:
        raise NotFoundError("Course not found")

    result = await db.execute(
        select(ReviewRating.rating).where(ReviewRating.course_id == course_id)
    )
    ratings = list(result.scalars().all())
    total, average = rating_service.summarize_ratings(ratings)

    return CourseRatingStats(
        total_reviews=total,
        average_rating=average,
        rating_distribution=rating_service.rating_distribution(ratings),
    )


async def find_user_review(
    user_id,
    course_id: int,
    db: AsyncSession,
) -> Optional[ReviewRating]:
    result = await db.execute(
        select(ReviewRating).where(
            ReviewRating.user_id == user_id,
            ReviewRating.course_id == course_id,
        )
    )
    return result.scalar_one_or_none()
