"""
Rendering context logger.

Provides logging interface for rendering context with automatic [render] prefix.
All rendering modules should import from this module, not from loguru directly.
"""

from pathlib import Path
from typing import List

from loguru import logger

from cvbuilder.utils.timestamp import format_size_kb

CONTEXT_PREFIX = "[render]"


def _log_info(message: str) -> None:
    """Log info message with [render] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [render] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [render] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [render] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [render] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# Build lifecycle messages


def log_build_start(source_path: Path, compiler: str, num_passes: int) -> None:
    _log_info(f"Building {source_path.name}...")
    _log_debug(f"  {compiler} x{num_passes}: {source_path}")


def _log_capped(log, label: str, items: List[str], cap: int) -> None:
    shown = items[:cap]
    for n, item in enumerate(shown, 1):
        log(f"  {label} {n}: {item}")
    hidden = len(items) - len(shown)
    if hidden:
        log(f"  ({hidden} more {label.lower()}s not shown)")


def _dump_output(name: str, text: str) -> None:
    if not text:
        return
    rule = "-" * 72
    logger.opt(raw=True).debug(f"\n{rule}\n{name}\n{rule}\n{text}\n")


def log_build_result(result, verbose: bool = False) -> None:
    """
    Summarize a BuildResult. Failed builds and verbose mode also dump the raw
    compiler output.
    """
    if not result.success:
        _log_error(f"Build failed: {result.error}")
        _log_capped(_log_error, "Error", result.errors, 10 if verbose else 5)
    else:
        size = f", {format_size_kb(result.pdf_size)}" if result.pdf_size is not None else ""
        _log_success(f"CV built in {result.elapsed_s:.2f}s{size}")
        if result.pdf_path:
            _log_debug(f"  Output: {result.pdf_path}")

    if result.warnings:
        _log_warning(f"Compiler reported {len(result.warnings)} warning(s)")
        _log_capped(_log_debug, "Warning", result.warnings, 10 if verbose else 3)

    if verbose or not result.success:
        _dump_output("compiler stdout", result.stdout)
        _dump_output("compiler stderr", result.stderr)
