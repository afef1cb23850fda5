"""
Watching context logger.

Provides logging interface for watching context with automatic [watch] prefix.
"""

from loguru import logger

CONTEXT_PREFIX = "[watch]"


def _log_info(message: str) -> None:
    """Log info message with [watch] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [watch] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [watch] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [watch] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")
