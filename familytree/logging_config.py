"""Application-wide logging setup on top of the standard `logging` module."""

import logging
from typing import Optional

from familytree.config import settings

_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """Install a single stderr handler on the package logger.

    Safe to call more than once; later calls only update the level.
    """
    global _configured

    logger = logging.getLogger("familytree")
    logger.setLevel((level or settings.logging.level).upper())

    if _configured:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(settings.logging.format))
    logger.addHandler(handler)
    _configured = True
