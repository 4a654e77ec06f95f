"""Logging setup for the Playlist Swipe server.

All modules log through child loggers of ``playlist_swipe_server`` so the
level and format can be controlled in one place:

    from .logging_config import get_logger

    logger = get_logger("session.guard")
    logger.info("Token refreshed: expires_in=%d", pair.expires_in)
"""

from __future__ import annotations

import logging
import os
import sys

ROOT_LOGGER_NAME = "playlist_swipe_server"

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure the package logger.

    Args:
        level: Log level name. Falls back to the LOG_LEVEL environment
            variable, then INFO.
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(getattr(logging, level_name, logging.INFO))

    # Avoid stacking handlers when the module is re-imported (tests, reload)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Return a child logger of the package logger."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def token_preview(token: str | None) -> str:
    """Shorten a token for log output."""
    if not token:
        return "(none)"
    return token[:8] + "..." if len(token) > 8 else "****"
