"""Custom exceptions for the rendering context."""

from pathlib import Path
from typing import Optional


class BuildError(Exception):
    """Base class for failures that end a build attempt."""


class MissingSourceError(BuildError):
    """
    Raised when the main LaTeX source does not exist.

    Attributes:
        source_path: The path that was expected to exist
    """

    def __init__(self, source_path: Path):
        self.source_path = source_path
        super().__init__(f"Source file {source_path} not found")


class CompilerUnavailableError(BuildError):
    """
    Raised when the LaTeX compiler executable cannot be found.

    Attributes:
        compiler: The executable name or path that was looked up
    """

    def __init__(self, compiler: str):
        self.compiler = compiler
        super().__init__(
            f"{compiler} not available. Install a TeX distribution "
            "(TeX Live, MacTeX or MiKTeX) or set LATEX_COMPILER."
        )


class CompilationError(BuildError):
    """
    A compiler run that exited with a non-zero status.

    Not raised: the coordinator reports it as BuildResult.error, keeping the
    captured output on the result.

    Attributes:
        exit_code: Compiler exit status
        stdout: Captured standard output
        stderr: Captured standard error
    """

    def __init__(self, exit_code: Optional[int], stdout: str = "", stderr: str = ""):
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(f"Compilation failed with exit code {exit_code}")
