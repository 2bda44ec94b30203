"""
Rating Service

Keeps a course's cached review_count and average_rating in line with its
review_ratings rows.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, Iterable, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from coursehub.core.database import get_session_maker
from coursehub.core.exceptions import ValidationError
from coursehub.models.course import Course
from coursehub.models.review_rating import ReviewRating


logger = logging.getLogger(__name__)

RATING_MIN = Decimal("1.0")
RATING_MAX = Decimal("5.0")
ONE_PLACE = Decimal("0.1")
NO_RATING = Decimal("0")


def validate_rating(rating: Decimal | float | int | None) -> Decimal:
    """
    Check that a rating lies in [1.0, 5.0].

    Raises:
        ValidationError: If the rating is missing or out of range.
    """
    if rating is None:
        raise ValidationError("Please provide a rating")
    value = Decimal(str(rating))
    if value < RATING_MIN or value > RATING_MAX:
        raise ValidationError("Rating must be between 1.0 and 5.0")
    return value


def summarize_ratings(ratings: Iterable[Decimal | float | int]) -> Tuple[int, Decimal]:
    """
    Count and average a set of ratings.

    The average is rounded half-up to one decimal place; an empty set
    averages to 0.

    Returns:
        Tuple of (count, average).
    """
    values = [Decimal(str(r)) for r in ratings]
    if not values:
        return 0, NO_RATING
    average = (sum(values) / len(values)).quantize(ONE_PLACE, rounding=ROUND_HALF_UP)
    return len(values), average


def rating_distribution(ratings: Iterable[Decimal | float | int]) -> Dict[int, int]:
    """
    Bucket ratings by star: 5 exactly, then [4,5), [3,4), [2,3), [1,2).
    """
    buckets = {5: 0, 4: 0, 3: 0, 2: 0, 1: 0}
    for rating in ratings:
        value = Decimal(str(rating))
        if value == 5:
            buckets[5] += 1
        elif value >= 1:
            buckets[int(value)] += 1
    return buckets


async def recompute(
    course_id: int,
    session_factory: Optional[Callable] = None,
) -> Optional[Tuple[int, Decimal]]:
    """
    Rewrite a course's review_count and average_rating from its reviews.

    Must be called after the triggering review write has been committed.
    Runs in its own session, so a failure here never rolls back or expires
    anything in the caller's session. The failure is logged and swallowed:
    the triggering write stays successful and the cached values stay stale
    until the next recompute.

    Args:
        course_id: Course whose cache to rebuild.
        session_factory: Creates the session to run in.

    Returns:
        (count, average) that was written, or None if the recompute failed.
    """
    factory = session_factory or get_session_maker()
    async with factory() as session:
        try:
            result = await session.execute(
                select(ReviewRating.rating).where(ReviewRating.course_id == course_id)
            )
            count, average = summarize_ratings(result.scalars().all())

            await session.execute(
                update(Course)
                .where(Course.id == course_id)
                .values(review_count=count, average_rating=average)
            )
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error("Failed to recompute rating stats for course %s: %s", course_id, e)
            return None

    logger.debug("Course %s rating stats: count=%s average=%s", course_id, count, average)
    return count, average
