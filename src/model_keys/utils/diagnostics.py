"""Diagnostics sink for failures that are hidden from end users."""

import logging

logger = logging.getLogger(__name__)


def report_error(error: BaseException) -> None:
    """Record ``error`` with its traceback for later inspection."""
    logger.error(f"Reported error: {type(error).__name__}: {error}", exc_info=error)
