"""
Rendering Context

Responsibilities:
- Invokes the LaTeX compiler
- Serializes and coalesces build requests
- Reports compilation diagnostics
- Cleans auxiliary compiler files

Owns: compiler processes, the PDF artifact, auxiliary files
Never: Modifies source content
"""

from cvbuilder.contexts.rendering.cleaner import CleanResult, clean_all, clean_auxiliary_files
from cvbuilder.contexts.rendering.compiler import (
    CompilerOutput,
    check_compiler,
    compiler_available,
    run_compiler,
)
from cvbuilder.contexts.rendering.coordinator import BuildCoordinator, BuildResult
from cvbuilder.contexts.rendering.exceptions import (
    BuildError,
    CompilationError,
    CompilerUnavailableError,
    MissingSourceError,
)

__all__ = [
    "BuildCoordinator",
    "BuildError",
    "BuildResult",
    "CleanResult",
    "CompilationError",
    "CompilerOutput",
    "CompilerUnavailableError",
    "MissingSourceError",
    "check_compiler",
    "clean_all",
    "clean_auxiliary_files",
    "compiler_available",
    "run_compiler",
]
