"""
Review Service Unit Tests

Tests for review writes and the rating recompute they trigger.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from conftest import NOW, make_result, make_session_factory, make_user


def make_review(user_id, course_id=1, rating="4.0", review_id=10):
    from coursehub.models.review_rating import ReviewRating

    return ReviewRating(
        id=review_id,
        user_id=user_id,
        course_id=course_id,
        rating=Decimal(rating),
        review="Nice",
        created_at=NOW,
        updated_at=NOW,
    )


class TestCreateReview:
    """Tests for creating reviews."""

    @pytest.mark.asyncio
    async def test_creates_review_and_recomputes(self, mock_async_session, user):
        from coursehub.schemas.review import ReviewCreate
        from coursehub.services.review_service import create_review

        mock_async_session.execute = AsyncMock(side_effect=[
            make_result(scalar=1),     # course exists
            make_result(scalar=None),  # no earlier review
        ])

        with patch("coursehub.services.rating_service.recompute", new=AsyncMock()) as recompute:
            review = await create_review(
                user, ReviewCreate(course_id=1, rating=Decimal("4.5")), mock_async_session
            )

        assert review.user_id == user.id
        assert review.rating == Decimal("4.5")
        mock_async_session.add.assert_called_once_with(review)
        mock_async_session.commit.assert_awaited()
        recompute.assert_awaited_once_with(1)

    @pytest.mark.asyncio
    async def test_second_review_rejected(self, mock_async_session, user):
        """Verify a user cannot review the same course twice."""
        from coursehub.core.exceptions import BusinessRuleError
        from coursehub.schemas.review import ReviewCreate
        from coursehub.services.review_service import create_review

        existing = make_review(user.id)
        mock_async_session.execute = AsyncMock(side_effect=[
            make_result(scalar=1),
            make_result(scalar=existing),
        ])

        with patch("coursehub.services.rating_service.recompute", new=AsyncMock()) as recompute:
            with pytest.raises(BusinessRuleError) as exc_info:
                await create_review(
                    user, ReviewCreate(course_id=1, rating=Decimal("2.0")), mock_async_session
                )

        assert exc_info.value.status_code == 400
        assert existing.rating == Decimal("4.0")
        mock_async_session.add.assert_not_called()
        recompute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_out_of_range_rejected_before_any_query(self, mock_async_session, user):
        from coursehub.core.exceptions import ValidationError
        from coursehub.schemas.review import ReviewCreate
        from coursehub.services.review_service import create_review

        with pytest.raises(ValidationError):
            await create_review(
                user, ReviewCreate(course_id=1, rating=Decimal("5.5")), mock_async_session
            )

        mock_async_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_course(self, mock_async_session, user):
        from coursehub.core.exceptions import NotFoundError
        from coursehub.schemas.review import ReviewCreate
        from coursehub.services.review_service import create_review

        mock_async_session.execute = AsyncMock(return_value=make_result(scalar=None))

        with pytest.raises(NotFoundError):
            await create_review(
                user, ReviewCreate(course_id=99, rating=Decimal("3.0")), mock_async_session
            )


class TestUpdateReview:
    """Tests for updating reviews."""

    @pytest.mark.asyncio
    async def test_rating_change_recomputes(self, mock_async_session, user):
        from coursehub.schemas.review import ReviewUpdate
        from coursehub.services.review_service import update_review

        review = make_review(user.id, rating="4.0")
        mock_async_session.execute = AsyncMock(return_value=make_result(scalar=review))

        with patch("coursehub.services.rating_service.recompute", new=AsyncMock()) as recompute:
            updated = await update_review(
                review.id, user, ReviewUpdate(rating=Decimal("2.0")), mock_async_session
            )

        assert updated.rating == Decimal("2.0")
        recompute.assert_awaited_once_with(1)

    @pytest.mark.asyncio
    async def test_text_only_change_skips_recompute(self, mock_async_session, user):
        from coursehub.schemas.review import ReviewUpdate
        from coursehub.services.review_service import update_review

        review = make_review(user.id)
        mock_async_session.execute = AsyncMock(return_value=make_result(scalar=review))

        with patch("coursehub.services.rating_service.recompute", new=AsyncMock()) as recompute:
            updated = await update_review(
                review.id, user, ReviewUpdate(review="Changed my mind"), mock_async_session
            )

        assert updated.review == "Changed my mind"
        recompute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_same_rating_skips_recompute(self, mock_async_session, user):
        from coursehub.schemas.review import ReviewUpdate
        from coursehub.services.review_service import update_review

        review = make_review(user.id, rating="4.0")
        mock_async_session.execute = AsyncMock(return_value=make_result(scalar=review))

        with patch("coursehub.services.rating_service.recompute", new=AsyncMock()) as recompute:
            await update_review(review.id, user, ReviewUpdate(rating=Decimal("4.0")), mock_async_session)

        recompute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_users_review_forbidden(self, mock_async_session, user):
        from coursehub.core.exceptions import AuthorizationError
        from coursehub.schemas.review import ReviewUpdate
        from coursehub.services.review_service import update_review

        review = make_review(make_user().id)
        mock_async_session.execute = AsyncMock(return_value=make_result(scalar=review))

        with pytest.raises(AuthorizationError):
            await update_review(review.id, user, ReviewUpdate(review="hijack"), mock_async_session)

        mock_async_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_update_rejected(self, mock_async_session, user):
        from coursehub.core.exceptions import ValidationError
        from coursehub.schemas.review import ReviewUpdate
        from coursehub.services.review_service import update_review

        with pytest.raises(ValidationError):
            await update_review(1, user, ReviewUpdate(), mock_async_session)


class TestDeleteReview:
    """Tests for deleting reviews."""

    @pytest.mark.asyncio
    async def test_owner_delete_recomputes_captured_course(self, mock_async_session, user):
        from coursehub.services.review_service import delete_review

        review = make_review(user.id, course_id=7)
        mock_async_session.execute = AsyncMock(return_value=make_result(scalar=review))

        with patch("coursehub.services.rating_service.recompute", new=AsyncMock()) as recompute:
            await delete_review(review.id, user, mock_async_session)

        mock_async_session.delete.assert_awaited_once_with(review)
        recompute.assert_awaited_once_with(7)

    @pytest.mark.asyncio
    async def test_admin_can_delete_any_review(self, mock_async_session, admin):
        from coursehub.services.review_service import delete_review

        review = make_review(make_user().id)
        mock_async_session.execute = AsyncMock(return_value=make_result(scalar=review))

        with patch("coursehub.services.rating_service.recompute", new=AsyncMock()) as recompute:
            await delete_review(review.id, admin, mock_async_session)

        recompute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stranger_cannot_delete(self, mock_async_session, user):
        from coursehub.core.exceptions import AuthorizationError
        from coursehub.services.review_service import delete_review

        review = make_review(make_user().id)
        mock_async_session.execute = AsyncMock(return_value=make_result(scalar=review))

        with pytest.raises(AuthorizationError):
            await delete_review(review.id, user, mock_async_session)

        mock_async_session.delete.assert_not_awaited()


class TestRecomputeFailure:
    """Tests for review writes when the rating recompute fails."""

    @staticmethod
    def failing_session():
        from sqlalchemy.exc import OperationalError
        from sqlalchemy.ext.asyncio import AsyncSession

        session = AsyncMock(spec=AsyncSession)
        session.execute = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("connection lost")))
        session.commit = AsyncMock()
        session.rollback = AsyncMock()
        return session

    @pytest.mark.asyncio
    async def test_create_still_succeeds(self, mock_async_session, user):
        """Verify the stored review is returned intact and the request session is never rolled back."""
        from coursehub.schemas.review import ReviewCreate, ReviewResponse
        from coursehub.services.review_service import create_review

        def stored(review):
            review.id = 11
            review.created_at = NOW
            review.updated_at = NOW

        mock_async_session.execute = AsyncMock(side_effect=[
            make_result(scalar=1),
            make_result(scalar=None),
        ])
        mock_async_session.refresh = AsyncMock(side_effect=stored)
        recompute_session = self.failing_session()

        with patch(
            "coursehub.services.rating_service.get_session_maker",
            return_value=make_session_factory(recompute_session),
        ):
            review = await create_review(
                user, ReviewCreate(course_id=1, rating=Decimal("4.5")), mock_async_session
            )

        response = ReviewResponse.model_validate(review)
        assert response.id == 11
        assert response.rating == Decimal("4.5")
        recompute_session.rollback.assert_awaited_once()
        mock_async_session.rollback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_still_succeeds(self, mock_async_session, user):
        from coursehub.schemas.review import ReviewResponse, ReviewUpdate
        from coursehub.services.review_service import update_review

        review = make_review(user.id, rating="4.0")
        mock_async_session.execute = AsyncMock(return_value=make_result(scalar=review))
        recompute_session = self.failing_session()

        with patch(
            "coursehub.services.rating_service.get_session_maker",
            return_value=make_session_factory(recompute_session),
        ):
            updated = await update_review(
                review.id, user, ReviewUpdate(rating=Decimal("2.0")), mock_async_session
            )

        assert ReviewResponse.model_validate(updated).rating == Decimal("2.0")
        recompute_session.rollback.assert_awaited_once()
        mock_async_session.rollback.assert_not_awaited()


class TestRatingStats:
    """Tests for course rating statistics."""

    @pytest.mark.asyncio
    async def test_stats_from_rows(self, mock_async_session):
        from coursehub.services.review_service import get_course_rating_stats

        mock_async_session.execute = AsyncMock(side_effect=[
            make_result(scalar=1),
            make_result(scalars=[Decimal("5.0"), Decimal("4.0")]),
        ])

        stats = await get_course_rating_stats(1, mock_async_session)

        assert stats.total_reviews == 2
        assert stats.average_rating == Decimal("4.5")
        assert stats.rating_distribution[5] == 1
        assert stats.rating_distribution[4] == 1
