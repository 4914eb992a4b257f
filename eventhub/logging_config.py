"""Loguru setup shared by the API and the scripts."""

import sys

from loguru import logger

from eventhub.config import settings


log_format = " | ".join(
    (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green>",
        "<level>{level:<8}</level>",
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan>",
        "<level>{message}</level>",
    )
)


def configure_logging(level: str | None = None) -> None:
    """Replace loguru's default sink with the application format."""
    logger.remove()
    logger.add(sys.stdout, format=log_format, level=level or settings.LOG_LEVEL)
