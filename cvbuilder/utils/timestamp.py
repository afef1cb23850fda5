"""Timestamp formatting utilities."""

from datetime import datetime
from typing import Optional


def now() -> str:
    """Compact local timestamp for directory names, e.g. 20251114_123456."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def mtime_iso(timestamp: Optional[float]) -> Optional[str]:
    """
    Convert a file modification time (seconds since epoch) to ISO 8601.

    Returns None when no timestamp is given, so "never built" maps to null in JSON.
    """
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp).isoformat()


def format_size_kb(num_bytes: int) -> str:
    """Format a byte count the way build logs report PDF sizes, e.g. '12.34 KB'."""
    return f"{num_bytes / 1024:.2f} KB"
