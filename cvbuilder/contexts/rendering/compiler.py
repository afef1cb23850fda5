"""
LaTeX Compilation Module

Spawns the LaTeX compiler as a child process and reports what it did.
Knows nothing about queuing; see coordinator.py for build serialization.
"""

import asyncio
import os
import re
import shutil
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from cvbuilder.config import BuildConfig
from cvbuilder.contexts.rendering.logger import _log_debug, _log_info, _log_warning

# Non-interactive, stop at the first error, write next to the working directory
COMPILER_FLAGS = ["-interaction=nonstopmode", "-halt-on-error", "-output-directory=."]


@dataclass
class CompilerOutput:
    """
    What a compiler invocation produced.

    Attributes:
        exit_code: Process exit status (None if the process could not be started)
        stdout: Standard output from the compiler
        stderr: Standard error from the compiler
        error: Process-level error message (e.g. executable not found)
    """

    exit_code: Optional[int]
    stdout: str = ""
    stderr: str = ""
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None and self.exit_code == 0


def compiler_available(compiler: str) -> bool:
    """Check whether the compiler resolves to an executable, without running it."""
    return shutil.which(compiler) is not None


async def check_compiler(compiler: str) -> Optional[str]:
    """
    Run `<compiler> --version`.

    Returns:
        First line of the version banner, or None if the compiler is unavailable
    """
    try:
        process = await asyncio.create_subprocess_exec(
            compiler,
            "--version",
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        _log_warning(f"{compiler} not found: {e}")
        return None

    stdout, _ = await process.communicate()
    if process.returncode != 0:
        _log_warning(f"{compiler} --version exited with code {process.returncode}")
        return None

    lines = stdout.decode("utf-8", errors="replace").splitlines()
    version = lines[0] if lines else compiler
    _log_info(f"{compiler} found: {version}")
    return version


def _compiler_env(texinputs: str) -> dict:
    """Environment for the child process only; os.environ is left untouched."""
    return {**os.environ, "TEXINPUTS": texinputs}


def _source_arg(source: Path, working_dir: Path) -> str:
    try:
        return str(source.relative_to(working_dir))
    except ValueError:
        return str(source)


async def _run_once(cmd: List[str], cwd: Path, env: dict) -> CompilerOutput:
    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=cwd,
            env=env,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        return CompilerOutput(exit_code=None, error=f"Process error: {e}")

    try:
        stdout, stderr = await process.communicate()
    except asyncio.CancelledError:
        # Never leave an orphaned compiler writing to the artifact
        with suppress(ProcessLookupError):
            process.kill()
        await process.wait()
        raise
    return CompilerOutput(
        exit_code=process.returncode,
        # Replace invalid UTF-8 bytes instead of crashing
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )


async def run_compiler(source: Path, config: BuildConfig) -> CompilerOutput:
    """
    Compile a LaTeX file to PDF in config.working_dir.

    Runs config.num_passes passes, stopping at the first non-zero exit. Output of
    all passes is concatenated. A process that cannot be started is reported as a
    failed CompilerOutput, never raised.

    Args:
        source: Path to the .tex file
        config: Build settings (compiler, TEXINPUTS, working directory, passes)

    Returns:
        CompilerOutput of the last pass that ran
    """
    cmd = [config.compiler, *COMPILER_FLAGS, _source_arg(source, config.working_dir)]
    env = _compiler_env(config.texinputs)
    _log_debug(f"Running: {' '.join(cmd)}")

    all_stdout = []
    all_stderr = []
    output = CompilerOutput(exit_code=None)

    for _ in range(max(1, config.num_passes)):
        output = await _run_once(cmd, config.working_dir, env)
        all_stdout.append(output.stdout)
        all_stderr.append(output.stderr)
        if not output.success:
            break

    output.stdout = "\n".join(all_stdout)
    output.stderr = "\n".join(all_stderr)
    return output


def parse_latex_log(log_content: str) -> Tuple[List[str], List[str]]:
    """
    Parse LaTeX log file for errors and warnings.

    Args:
        log_content: Content of the .log file

    Returns:
        Tuple of (errors, warnings)
    """
    errors = []
    warnings = []

    # LaTeX error pattern: "! Error message"
    error_pattern = re.compile(r"^! (.+)$", re.MULTILINE)
    for match in error_pattern.finditer(log_content):
        errors.append(match.group(1).strip())

    # Error lines that don't start with "!"
    additional_error_patterns = [
        r"File ended while scanning use of",
        r"Emergency stop",
    ]
    for pattern in additional_error_patterns:
        match = re.search(rf"({pattern}.*?)$", log_content, re.MULTILINE)
        if match and match.group(1).strip() not in errors:
            errors.append(match.group(1).strip())

    warning_patterns = [
        r"LaTeX Warning: (.+)",
        r"Package \w+ Warning: (.+)",
        r"Overfull \\hbox \((.+)\)",
        r"Underfull \\hbox \((.+)\)",
    ]
    for pattern in warning_patterns:
        for match in re.finditer(pattern, log_content, re.MULTILINE):
            warnings.append(match.group(1).strip())

    return errors, warnings


def read_latex_log(log_path: Path) -> Tuple[List[str], List[str]]:
    """Parse the compiler's .log file if it exists."""
    if not log_path.exists():
        return [], []
    # TeX engines write the log in latin-1 (font metadata is not UTF-8)
    return parse_latex_log(log_path.read_text(encoding="latin-1"))
