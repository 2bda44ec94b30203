"""
Video Service Unit Tests

Tests for appending videos, ordinal positions and bulk reordering.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from conftest import make_result, make_user


def session_factory_for(outcomes):
    """
    Factory of mock sessions whose UPDATE result depends on the video id.

    outcomes maps video_id to a rowcount or an exception to raise.
    """
    def factory():
        session = AsyncMock()

        async def execute(stmt):
            video_id = stmt.compile().params["id_1"]
            outcome = outcomes[video_id]
            if isinstance(outcome, Exception):
                raise outcome
            return make_result(rowcount=outcome)

        session.execute = execute
        context = MagicMock()
        context.__aenter__ = AsyncMock(return_value=session)
        context.__aexit__ = AsyncMock(return_value=False)
        return context

    return factory


def store_error():
    return OperationalError("UPDATE videos", {}, Exception("connection reset"))


class TestNextOrderIndex:
    """Tests for the append position."""

    @pytest.mark.asyncio
    async def test_after_existing_max(self, mock_async_session):
        from coursehub.services.video_service import next_order_index

        mock_async_session.execute = AsyncMock(return_value=make_result(scalar=4))

        assert await next_order_index(1, mock_async_session) == 5

    @pytest.mark.asyncio
    async def test_empty_course_starts_at_zero(self, mock_async_session):
        from coursehub.services.video_service import next_order_index

        mock_async_session.execute = AsyncMock(return_value=make_result(scalar=None))

        assert await next_order_index(1, mock_async_session) == 0


class TestAppendVideo:
    """Tests for uploading a video to a course."""

    @pytest.mark.asyncio
    async def test_appends_after_last_video(self, mock_async_session, mock_storage, author, course):
        from coursehub.services.video_service import append_video

        mock_async_session.execute = AsyncMock(side_effect=[
            make_result(scalar=course),
            make_result(scalar=2),
        ])

        video = await append_video(
            course.id, author, b"\x00\x01", "Lesson One.mp4", "video/mp4", 120,
            mock_async_session, mock_storage,
        )

        assert video.order_index == 3
        assert video.title == "Lesson One"
        assert video.duration_seconds == 120
        bucket, key = mock_storage.put.await_args.args[:2]
        assert bucket == "courses"
        assert key.startswith(f"{course.id}/Lesson_One-")
        assert video.url == f"/static/courses/{key}"

    @pytest.mark.asyncio
    async def test_rejects_non_video(self, mock_async_session, mock_storage, author):
        from coursehub.core.exceptions import ValidationError
        from coursehub.services.video_service import append_video

        with pytest.raises(ValidationError):
            await append_video(
                1, author, b"text", "notes.txt", "text/plain", 10,
                mock_async_session, mock_storage,
            )

        mock_storage.put.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rejects_non_positive_duration(self, mock_async_session, mock_storage, author):
        from coursehub.core.exceptions import ValidationError
        from coursehub.services.video_service import append_video

        with pytest.raises(ValidationError):
            await append_video(
                1, author, b"\x00", "a.mp4", "video/mp4", 0,
                mock_async_session, mock_storage,
            )

    @pytest.mark.asyncio
    async def test_only_author_may_upload(self, mock_async_session, mock_storage, course):
        from coursehub.core.exceptions import AuthorizationError
        from coursehub.services.video_service import append_video

        mock_async_session.execute = AsyncMock(return_value=make_result(scalar=course))

        with pytest.raises(AuthorizationError) as exc_info:
            await append_video(
                course.id, make_user(), b"\x00", "a.mp4", "video/mp4", 5,
                mock_async_session, mock_storage,
            )

        assert exc_info.value.detail == "You can only modify your own courses"
        mock_storage.put.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_course(self, mock_async_session, mock_storage, author):
        from coursehub.core.exceptions import NotFoundError
        from coursehub.services.video_service import append_video

        mock_async_session.execute = AsyncMock(return_value=make_result(scalar=None))

        with pytest.raises(NotFoundError) as exc_info:
            await append_video(
                99, author, b"\x00", "a.mp4", "video/mp4", 5,
                mock_async_session, mock_storage,
            )

        assert exc_info.value.detail == "No course found with that ID"

    @pytest.mark.asyncio
    async def test_db_failure_removes_uploaded_file(self, mock_async_session, mock_storage, author, course):
        from coursehub.core.exceptions import UpstreamError
        from coursehub.services.video_service import append_video

        mock_async_session.execute = AsyncMock(side_effect=[
            make_result(scalar=course),
            make_result(scalar=None),
        ])
        mock_async_session.commit = AsyncMock(side_effect=store_error())

        with pytest.raises(UpstreamError):
            await append_video(
                course.id, author, b"\x00", "a.mp4", "video/mp4", 5,
                mock_async_session, mock_storage,
            )

        mock_async_session.rollback.assert_awaited_once()
        stored_key = mock_storage.put.await_args.args[1]
        mock_storage.delete.assert_awaited_once_with("courses", stored_key)


def make_video(**overrides):
    from coursehub.models.video import Video

    fields = {
        "id": 5,
        "course_id": 1,
        "title": "Lesson",
        "duration_seconds": 60,
        "url": "/static/courses/1/Lesson.mp4",
        "order_index": 2,
    }
    fields.update(overrides)
    return Video(**fields)


class TestCreateVideo:
    """Tests for registering an already-stored video."""

    @pytest.mark.asyncio
    async def test_missing_index_appends(self, mock_async_session, course):
        from coursehub.schemas.video import VideoCreate
        from coursehub.services.video_service import create_video

        mock_async_session.execute = AsyncMock(side_effect=[
            make_result(scalar=course),
            make_result(scalar=6),
        ])
        data = VideoCreate(course_id=course.id, title="Intro", duration_seconds=30, url="/v/intro.mp4")

        video = await create_video(data, mock_async_session)

        assert video.order_index == 7
        mock_async_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_free_explicit_index(self, mock_async_session, course):
        from coursehub.schemas.video import VideoCreate
        from coursehub.services.video_service import create_video

        mock_async_session.execute = AsyncMock(side_effect=[
            make_result(scalar=course),
            make_result(scalar=None),
        ])
        data = VideoCreate(course_id=course.id, title="Intro", duration_seconds=30, url="/v/intro.mp4", order_index=0)

        video = await create_video(data, mock_async_session)

        assert video.order_index == 0

    @pytest.mark.asyncio
    async def test_taken_index_rejected(self, mock_async_session, course):
        from coursehub.core.exceptions import ValidationError
        from coursehub.schemas.video import VideoCreate
        from coursehub.services.video_service import create_video

        mock_async_session.execute = AsyncMock(side_effect=[
            make_result(scalar=course),
            make_result(scalar=4),
        ])
        data = VideoCreate(course_id=course.id, title="Intro", duration_seconds=30, url="/v/intro.mp4", order_index=2)

        with pytest.raises(ValidationError) as exc_info:
            await create_video(data, mock_async_session)

        assert exc_info.value.detail == "order_index 2 is already used in this course"
        mock_async_session.add.assert_not_called()
        mock_async_session.commit.assert_not_awaited()


class TestUpdateVideo:
    """Tests for partial video updates."""

    @pytest.mark.asyncio
    async def test_move_to_taken_index_rejected(self, mock_async_session):
        from coursehub.core.exceptions import ValidationError
        from coursehub.schemas.video import VideoUpdate
        from coursehub.services.video_service import update_video

        video = make_video()
        mock_async_session.execute = AsyncMock(side_effect=[
            make_result(scalar=video),
            make_result(scalar=9),
        ])

        with pytest.raises(ValidationError):
            await update_video(video.id, VideoUpdate(order_index=0), mock_async_session)

        assert video.order_index == 2
        mock_async_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_move_to_free_index(self, mock_async_session):
        from coursehub.schemas.video import VideoUpdate
        from coursehub.services.video_service import update_video

        video = make_video()
        mock_async_session.execute = AsyncMock(side_effect=[
            make_result(scalar=video),
            make_result(scalar=None),
        ])

        updated = await update_video(video.id, VideoUpdate(order_index=8), mock_async_session)

        assert updated.order_index == 8
        mock_async_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_same_index_skips_lookup(self, mock_async_session):
        from coursehub.schemas.video import VideoUpdate
        from coursehub.services.video_service import update_video

        video = make_video()
        mock_async_session.execute = AsyncMock(return_value=make_result(scalar=video))

        updated = await update_video(video.id, VideoUpdate(order_index=2, title="Renamed"), mock_async_session)

        assert updated.title == "Renamed"
        assert mock_async_session.execute.await_count == 1


class TestValidateReorder:
    """Tests for reorder request validation."""

    def test_rejects_duplicate_video(self):
        from coursehub.core.exceptions import ValidationError
        from coursehub.schemas.video import VideoOrder
        from coursehub.services.video_service import validate_reorder

        with pytest.raises(ValidationError):
            validate_reorder([VideoOrder(video_id=1, order_index=0), VideoOrder(video_id=1, order_index=1)])

    def test_rejects_duplicate_index(self):
        from coursehub.core.exceptions import ValidationError
        from coursehub.schemas.video import VideoOrder
        from coursehub.services.video_service import validate_reorder

        with pytest.raises(ValidationError):
            validate_reorder([VideoOrder(video_id=1, order_index=0), VideoOrder(video_id=2, order_index=0)])

    def test_rejects_negative_index(self):
        from coursehub.core.exceptions import ValidationError
        from coursehub.schemas.video import VideoOrder
        from coursehub.services.video_service import validate_reorder

        with pytest.raises(ValidationError):
            validate_reorder([VideoOrder(video_id=1, order_index=-1)])


class TestReorderVideos:
    """Tests for concurrent per-video reorder updates."""

    @pytest.mark.asyncio
    async def test_all_updates_applied(self, mock_async_session, author, course):
        from coursehub.schemas.video import VideoOrder
        from coursehub.services.video_service import reorder_videos

        mock_async_session.execute = AsyncMock(return_value=make_result(scalar=course))
        orders = [VideoOrder(video_id=1, order_index=1), VideoOrder(video_id=2, order_index=0)]

        result = await reorder_videos(
            course.id, orders, author, mock_async_session,
            session_factory=session_factory_for({1: 1, 2: 1}),
        )

        assert sorted(result.updated) == [1, 2]
        assert result.unmatched == []

    @pytest.mark.asyncio
    async def test_videos_of_other_courses_reported_unmatched(self, mock_async_session, author, course):
        from coursehub.schemas.video import VideoOrder
        from coursehub.services.video_service import reorder_videos

        mock_async_session.execute = AsyncMock(return_value=make_result(scalar=course))
        orders = [VideoOrder(video_id=1, order_index=0), VideoOrder(video_id=99, order_index=1)]

        result = await reorder_videos(
            course.id, orders, author, mock_async_session,
            session_factory=session_factory_for({1: 1, 99: 0}),
        )

        assert result.updated == [1]
        assert result.unmatched == [99]

    @pytest.mark.asyncio
    async def test_partial_failure_is_surfaced(self, mock_async_session, author, course):
        """Verify applied updates are reported, not rolled back, when others fail."""
        from coursehub.core.exceptions import PartialFailureError
        from coursehub.schemas.video import VideoOrder
        from coursehub.services.video_service import reorder_videos

        mock_async_session.execute = AsyncMock(return_value=make_result(scalar=course))
        orders = [
            VideoOrder(video_id=1, order_index=2),
            VideoOrder(video_id=2, order_index=1),
            VideoOrder(video_id=3, order_index=0),
        ]

        with pytest.raises(PartialFailureError) as exc_info:
            await reorder_videos(
                course.id, orders, author, mock_async_session,
                session_factory=session_factory_for({1: 1, 2: store_error(), 3: 1}),
            )

        assert exc_info.value.status_code == 500
        assert exc_info.value.applied == [1, 3]
        assert exc_info.value.failed == [2]

    @pytest.mark.asyncio
    async def test_total_failure_is_upstream_error(self, mock_async_session, author, course):
        from coursehub.core.exceptions import UpstreamError
        from coursehub.schemas.video import VideoOrder
        from coursehub.services.video_service import reorder_videos

        mock_async_session.execute = AsyncMock(return_value=make_result(scalar=course))

        with pytest.raises(UpstreamError):
            await reorder_videos(
                course.id, [VideoOrder(video_id=1, order_index=0)], author, mock_async_session,
                session_factory=session_factory_for({1: store_error()}),
            )

    @pytest.mark.asyncio
    async def test_only_author_may_reorder(self, mock_async_session, course):
        from coursehub.core.exceptions import AuthorizationError
        from coursehub.schemas.video import VideoOrder
        from coursehub.services.video_service import reorder_videos

        mock_async_session.execute = AsyncMock(return_value=make_result(scalar=course))
        factory = MagicMock()

        with pytest.raises(AuthorizationError):
            await reorder_videos(
                course.id, [VideoOrder(video_id=1, order_index=0)], make_user(), mock_async_session,
                session_factory=factory,
            )

        factory.assert_not_called()
