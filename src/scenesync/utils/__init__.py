"""Utility functions for scenesync."""

from scenesync.utils.logging import get_logger, prompt_preview

__all__ = ["get_logger", "prompt_preview"]
