"""
Logging Setup

Configures the root logger once at startup from settings.LOG_LEVEL.
"""

import logging

from coursehub.core.config import settings


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """
    Configure application logging.

    Args:
        level: Optional level name overriding settings.LOG_LEVEL.
    """
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format=LOG_FORMAT,
    )
    # SQL echo is controlled by the engine, keep the pool quiet
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
