"""
Logging setup.

Every module logs through ``from token_keeper.core.logger import logger``.
"""

from __future__ import annotations

import sys

from loguru import logger

_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def setup_logging(level: str = "INFO", *, json: bool = False) -> None:
    """Replace loguru's default sink with the keeper's stderr sink."""
    logger.remove()
    if json:
        logger.add(sys.stderr, level=level.upper(), serialize=True, backtrace=False)
    else:
        logger.add(sys.stderr, level=level.upper(), format=_CONSOLE_FORMAT, backtrace=False)


__all__ = ["logger", "setup_logging"]
