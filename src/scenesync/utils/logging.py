"""Logging utilities for scenesync."""

from __future__ import annotations

import logging
import sys
from typing import TextIO


def get_logger(
    name: str = "scenesync",
    level: int = logging.INFO,
    stream: TextIO = sys.stderr,
) -> logging.Logger:
    """Get a configured logger for scenesync.

    Args:
        name: Logger name.
        level: Logging level.
        stream: Output stream.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(stream)
        handler.setLevel(level)

        formatter = logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    else:
        for handler in logger.handlers:
            handler.setLevel(level)

    logger.setLevel(level)
    return logger


def prompt_preview(prompt: str, limit: int = 50) -> str:
    """Shorten a prompt for log output."""
    if len(prompt) <= limit:
        return prompt
    return prompt[:limit] + "..."
