"""
Pytest Configuration and Fixtures

Provides reusable async fixtures for testing the CourseHub Backend.
"""

import os
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

os.environ.setdefault("SECRET_KEY", "test-secret-key")

from coursehub.api.deps import get_current_user, get_current_user_optional
from coursehub.core.database import get_db
from coursehub.core.payments import get_payment_provider
from coursehub.core.storage import get_storage
from coursehub.main import app
from coursehub.models.course import Course
from coursehub.models.enums import UserRole
from coursehub.models.user import User


NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def make_result(
    scalar: Any = None,
    scalars: Optional[Iterable[Any]] = None,
    rows: Optional[Iterable[Any]] = None,
    rowcount: int = 0,
) -> MagicMock:
    """
    Build a mock of a SQLAlchemy Result.

    Usage:
        session.execute = AsyncMock(side_effect=[make_result(scalar=course), ...])
    """
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    result.scalar_one.return_value = scalar
    result.scalar.return_value = scalar
    result.scalars.return_value.all.return_value = list(scalars or [])
    row_list = list(rows or [])
    result.all.return_value = row_list
    result.first.return_value = row_list[0] if row_list else None
    result.rowcount = rowcount
    return result


def make_session_factory(session: Any) -> MagicMock:
    """
    Session factory whose context manager yields the given session.

    Usage:
        await recompute(1, session_factory=make_session_factory(session))
    """
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=session)
    context.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=context)


def make_user(role: UserRole = UserRole.USER, **overrides) -> User:
    fields = {
        "id": uuid.uuid4(),
        "email": "learner@example.com",
        "password_hash": "not-a-real-hash",
        "full_name": "Test Learner",
        "photo": None,
        "role": role,
        "is_active": True,
        "created_at": NOW,
    }
    fields.update(overrides)
    return User(**fields)


def make_course(author_id: uuid.UUID, **overrides) -> Course:
    fields = {
        "id": 1,
        "title": "Intro to Python",
        "price": Decimal("499.00"),
        "author_id": author_id,
        "description": "Learn Python",
        "image": "/static/courses/course-1.jpeg",
        "requirements": ["A laptop"],
        "category": "programming",
        "published": False,
        "review_count": 0,
        "average_rating": Decimal("0"),
        "created_at": NOW,
        "updated_at": NOW,
    }
    fields.update(overrides)
    return Course(**fields)


# ==================== Database Fixtures ====================

@pytest.fixture
def mock_async_session() -> AsyncMock:
    """
    Create a mock async database session.

    Returns:
        AsyncMock configured to behave like AsyncSession.
    """
    session = AsyncMock(spec=AsyncSession)
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.delete = AsyncMock()
    session.execute = AsyncMock(return_value=make_result())
    session.add = MagicMock()
    return session


# ==================== Model Fixtures ====================

@pytest.fixture
def user() -> User:
    return make_user()


@pytest.fixture
def admin() -> User:
    return make_user(role=UserRole.ADMIN, email="admin@example.com", full_name="Admin")


@pytest.fixture
def author() -> User:
    return make_user(email="author@example.com", full_name="Course Author")


@pytest.fixture
def course(author) -> Course:
    return make_course(author.id)


# ==================== Collaborator Fixtures ====================

@pytest.fixture
def mock_storage() -> MagicMock:
    storage = MagicMock()
    storage.put = AsyncMock(side_effect=lambda bucket, key, data, content_type: f"/static/{bucket}/{key}")
    storage.delete = AsyncMock()
    storage.key_from_url = MagicMock(
        side_effect=lambda bucket, url: url.split(f"/static/{bucket}/", 1)[1]
        if url and url.startswith(f"/static/{bucket}/") else None
    )
    return storage


@pytest.fixture
def mock_provider() -> MagicMock:
    provider = MagicMock()
    provider.create_session = AsyncMock()
    provider.retrieve_session = AsyncMock()
    provider.construct_event = MagicMock()
    return provider


# ==================== API Fixtures ====================

@pytest.fixture
def client_factory(mock_async_session, mock_storage, mock_provider):
    """
    Build a TestClient with collaborators overridden.

    Usage:
        client = client_factory(current_user=user)
    """
    def _override_db():
        yield mock_async_session

    def _create(current_user: Optional[User] = None) -> TestClient:
        app.dependency_overrides[get_db] = _override_db
        app.dependency_overrides[get_storage] = lambda: mock_storage
        app.dependency_overrides[get_payment_provider] = lambda: mock_provider
        app.dependency_overrides[get_current_user_optional] = lambda: current_user
        if current_user is not None:
            app.dependency_overrides[get_current_user] = lambda: current_user
        return TestClient(app)

    yield _create
    app.dependency_overrides.clear()
