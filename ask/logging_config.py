"""Loguru logging configuration."""

import os
import sys

from loguru import logger


def setup_logging(level: str | None = None) -> None:
    """Configure loguru to write to stderr at the given level."""
    if level is None:
        level = os.environ.get("ASK_LOG_LEVEL", "WARNING")
    level = level.upper()

    logger.remove()
    logger.add(
        sys.stderr,
        format="<level>{level: <8}</level> | {message}",
        level=level,
        colorize=True,
        backtrace=level == "DEBUG",
        diagnose=False,
    )
