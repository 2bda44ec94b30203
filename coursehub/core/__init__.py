"""
CourseHub Backend - Core Module

This module contains configuration, database setup, errors, security,
object storage and the payment provider.
"""

from coursehub.core.config import get_settings, settings
from coursehub.core.database import Base, get_db, get_engine

__all__ = ["settings", "get_settings", "Base", "get_db", "get_engine"]
