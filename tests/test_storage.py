"""
Storage and Course Helper Tests

Tests for the filesystem object store and the course form helpers.
"""

import pytest


class TestLocalObjectStorage:
    """Tests for LocalObjectStorage."""

    @pytest.mark.asyncio
    async def test_put_writes_file_and_returns_url(self, tmp_path):
        from coursehub.core.storage import LocalObjectStorage

        storage = LocalObjectStorage(str(tmp_path), "/static/")

        url = await storage.put("courses", "1/intro.mp4", b"data", "video/mp4")

        assert url == "/static/courses/1/intro.mp4"
        assert (tmp_path / "courses" / "1" / "intro.mp4").read_bytes() == b"data"

    @pytest.mark.asyncio
    async def test_put_never_overwrites(self, tmp_path):
        from coursehub.core.exceptions import UpstreamError
        from coursehub.core.storage import LocalObjectStorage

        storage = LocalObjectStorage(str(tmp_path), "/static")
        await storage.put("users", "a.jpeg", b"first", "image/jpeg")

        with pytest.raises(UpstreamError):
            await storage.put("users", "a.jpeg", b"second", "image/jpeg")

        assert (tmp_path / "users" / "a.jpeg").read_bytes() == b"first"

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, tmp_path):
        from coursehub.core.storage import LocalObjectStorage

        storage = LocalObjectStorage(str(tmp_path), "/static")
        await storage.put("courses", "x.jpeg", b"x", "image/jpeg")

        await storage.delete("courses", "x.jpeg")
        await storage.delete("courses", "x.jpeg")

        assert not (tmp_path / "courses" / "x.jpeg").exists()

    @pytest.mark.asyncio
    async def test_key_outside_bucket_rejected(self, tmp_path):
        from coursehub.core.exceptions import ValidationError
        from coursehub.core.storage import LocalObjectStorage

        storage = LocalObjectStorage(str(tmp_path), "/static")

        with pytest.raises(ValidationError):
            await storage.put("courses", "../users/evil.jpeg", b"x", "image/jpeg")

    def test_key_from_url(self, tmp_path):
        from coursehub.core.storage import LocalObjectStorage

        storage = LocalObjectStorage(str(tmp_path), "/static")

        assert storage.key_from_url("courses", "/static/courses/1/a.mp4") == "1/a.mp4"
        assert storage.key_from_url("courses", "/static/users/a.jpeg") is None
        assert storage.key_from_url("courses", "https://cdn.example.com/a.jpeg") is None


class TestKeyHelpers:
    """Tests for key naming helpers."""

    def test_sanitize_filename(self):
        from coursehub.core.storage import sanitize_filename

        assert sanitize_filename("Intro: part 1!") == "Intro__part_1_"
        assert len(sanitize_filename("x" * 80)) == 50

    def test_unique_image_key(self):
        from coursehub.core.storage import unique_image_key

        key = unique_image_key("course", "png")

        assert key.startswith("course-")
        assert key.endswith(".png")
        assert unique_image_key("course") != unique_image_key("course")


class TestCourseFormHelpers:
    """Tests for requirements parsing and the publish check."""

    def test_parse_requirements(self):
        from coursehub.services.course_service import parse_requirements

        assert parse_requirements('["A laptop", "Curiosity"]') == ["A laptop", "Curiosity"]
        assert parse_requirements("") is None
        assert parse_requirements(None) is None

    @pytest.mark.parametrize("raw", ["not json", '{"a": 1}', "[1, 2]"])
    def test_parse_requirements_rejects_non_string_arrays(self, raw):
        from coursehub.core.exceptions import ValidationError
        from coursehub.services.course_service import parse_requirements

        with pytest.raises(ValidationError):
            parse_requirements(raw)

    def test_complete_course_has_nothing_missing(self, course):
        from coursehub.services.course_service import missing_publish_fields

        assert missing_publish_fields(course) == []

    def test_missing_fields_listed(self, author):
        from conftest import make_course
        from coursehub.services.course_service import missing_publish_fields

        draft = make_course(author.id, description="", image=None, requirements=[])

        assert missing_publish_fields(draft) == ["description", "image", "requirements"]

    @pytest.mark.asyncio
    async def test_upload_banner_rejects_non_image(self, mock_storage):
        from coursehub.core.exceptions import ValidationError
        from coursehub.services.course_service import upload_banner

        with pytest.raises(ValidationError):
            await upload_banner(mock_storage, b"%PDF", "application/pdf")

        mock_storage.put.assert_not_awaited()
