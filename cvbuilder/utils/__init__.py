"""
Shared utilities for cvbuilder.

Common functionality used across contexts:
- Logger setup
- Timestamps
- PDF inspection
"""

from cvbuilder.utils.pdf_processing import page_count
from cvbuilder.utils.timestamp import format_size_kb, mtime_iso, now

__all__ = ["format_size_kb", "mtime_iso", "now", "page_count"]
