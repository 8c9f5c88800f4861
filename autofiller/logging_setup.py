"""Logging helpers for the ``autofiller`` package."""
from __future__ import annotations

import logging
from typing import Optional, Union

from rich.logging import RichHandler

PACKAGE_LOGGER = "autofiller"

_handler: Optional[RichHandler] = None


def configure_logging(level: Union[str, int] = "INFO") -> logging.Logger:
    """Attach a single rich handler to the package logger and set its level."""

    global _handler
    logger = logging.getLogger(PACKAGE_LOGGER)
    if _handler is None:
        _handler = RichHandler(rich_tracebacks=True, show_path=False, markup=False)
        _handler.setFormatter(logging.Formatter("[%(name)s] %(message)s"))
        logger.addHandler(_handler)
        logger.propagate = False
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)
    return logger


def set_debug_mode(enabled: bool) -> None:
    """Switch package log verbosity between DEBUG and INFO."""

    logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG if enabled else logging.INFO)
