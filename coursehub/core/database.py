"""
Database

Async SQLAlchemy engine and sessions (asyncpg driver, PostgreSQL).

The engine is created on first use so importing models never opens a
connection. Request handlers get a session from get_db; work that needs
its own transaction (concurrent reorder updates) opens sessions from
get_session_maker() directly.
"""

from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from coursehub.core.config import settings


class Base(DeclarativeBase):
    """Declarative base shared by every CourseHub model."""


_engine: Optional[AsyncEngine] = None
_session_maker: Optional[async_sessionmaker[AsyncSession]] = None


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine = create_async_engine(
            settings.DATABASE_URL,
            echo=settings.DB_ECHO,
            pool_pre_ping=True,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
        )
    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """
    Shared session factory.

    Sessions keep loaded attributes after commit so services can return
    refreshed ORM objects to the response layer.
    """
    global _session_maker
    if _session_maker is None:
        _session_maker = async_sessionmaker(
            bind=get_engine(),
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_maker


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding one session per request.

    Services commit their own writes; anything left pending when the
    handler returns is committed here, and any error rolls it back.
    """
    async with get_session_maker()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def close_db() -> None:
    """Dispose of the engine's pool (application shutdown)."""
    global _engine, _session_maker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_maker = None
