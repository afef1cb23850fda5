"""
Auxiliary file cleanup.

Removes the intermediate files the compiler leaves in the working directory.
Deletion failures are logged per file and do not stop the rest of the cleanup.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from cvbuilder.config import BuildConfig
from cvbuilder.contexts.rendering.logger import _log_info, _log_success, _log_warning


@dataclass
class CleanResult:
    """
    Result of a cleanup run.

    Attributes:
        deleted: Files that were removed
        failed: Files that matched but could not be removed
    """

    deleted: List[Path] = field(default_factory=list)
    failed: List[Path] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed

    @property
    def message(self) -> str:
        if not self.deleted and not self.failed:
            return "No auxiliary files found to clean"
        message = f"Cleanup completed: {len(self.deleted)} files deleted"
        if self.failed:
            message += f", {len(self.failed)} could not be deleted"
        return message


def find_auxiliary_files(config: BuildConfig) -> List[Path]:
    """Top-level files in the working directory ending in an auxiliary suffix."""
    return sorted(
        path
        for path in config.working_dir.iterdir()
        if path.is_file() and path.name.endswith(config.aux_suffixes)
    )


def _remove(path: Path, result: CleanResult) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        # Already gone
        return
    except OSError as e:
        _log_warning(f"Could not delete {path.name}: {e}")
        result.failed.append(path)
        return
    _log_info(f"Deleted: {path.name}")
    result.deleted.append(path)


def clean_auxiliary_files(config: BuildConfig) -> CleanResult:
    """
    Delete auxiliary compiler files from config.working_dir.

    Files not matching config.aux_suffixes are never touched.
    """
    _log_info("Cleaning auxiliary files...")
    result = CleanResult()

    for path in find_auxiliary_files(config):
        _remove(path, result)

    if result.success:
        _log_success(result.message)
    else:
        _log_warning(result.message)
    return result


def clean_all(config: BuildConfig) -> CleanResult:
    """Deep clean: auxiliary files and the compiled PDF."""
    result = clean_auxiliary_files(config)
    if config.output_path.exists():
        _remove(config.output_path, result)
    return result
