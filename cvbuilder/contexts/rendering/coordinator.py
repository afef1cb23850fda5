"""
Build Coordinator

Serializes build requests so that at most one compiler process runs at a time.

Requests that arrive while a build is running are queued. When the running build
finishes, the whole queue is released by a single follow-up build (after a short
debounce), so a burst of N requests costs at most two compiler invocations. A
queued caller always receives the result of a build that started after it asked,
never the one that was already running.
"""

import asyncio
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Set

from cvbuilder.config import BuildConfig
from cvbuilder.contexts.rendering.compiler import (
    CompilerOutput,
    compiler_available,
    read_latex_log,
    run_compiler,
)
from cvbuilder.contexts.rendering.exceptions import (
    BuildError,
    CompilationError,
    CompilerUnavailableError,
    MissingSourceError,
)
from cvbuilder.contexts.rendering.logger import (
    _log_debug,
    _log_error,
    _log_info,
    _log_warning,
    log_build_result,
    log_build_start,
)
from cvbuilder.utils.pdf_processing import page_count

Runner = Callable[[Path, BuildConfig], Awaitable[CompilerOutput]]


@dataclass
class BuildResult:
    """
    Outcome of one build attempt.

    Attributes:
        success: Whether the compiler produced the document
        exit_code: Compiler exit status (None if it never ran)
        error: Diagnostic message when the build failed
        stdout: Captured compiler standard output
        stderr: Captured compiler standard error
        errors: Errors parsed from the compiler's .log file
        warnings: Warnings parsed from the compiler's .log file
        pdf_path: Path to the PDF (None if it does not exist)
        pdf_size: PDF size in bytes (None if it does not exist)
        page_count: Number of pages in the PDF (None if unreadable)
        elapsed_s: Wall time of the build
    """

    success: bool
    exit_code: Optional[int] = None
    error: Optional[str] = None
    stdout: str = ""
    stderr: str = ""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    pdf_path: Optional[Path] = None
    pdf_size: Optional[int] = None
    page_count: Optional[int] = None
    elapsed_s: float = 0.0

    def to_dict(self) -> dict:
        """JSON body for the API and WebSocket events."""
        return {
            "success": self.success,
            "exitCode": self.exit_code,
            "error": self.error,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "errors": self.errors,
            "warnings": self.warnings,
            "pdfSize": self.pdf_size,
            "pageCount": self.page_count,
            "elapsed": round(self.elapsed_s, 3),
        }


class BuildCoordinator:
    """
    Owns the busy flag and the queue of callers waiting for a follow-up build.

    Must be used from a single asyncio event loop. The runner is injectable so the
    compiler can be replaced (tests, alternative engines).
    """

    def __init__(
        self,
        config: Optional[BuildConfig] = None,
        runner: Runner = run_compiler,
        verbose: bool = False,
    ):
        self.config = config or BuildConfig()
        self.verbose = verbose
        self.is_building = False
        self._runner = runner
        self._waiters: List[asyncio.Future] = []
        self._follow_ups: Set[asyncio.Task] = set()
        self._current: Optional[asyncio.Task] = None

    @property
    def queued(self) -> int:
        """Number of callers waiting for the next build."""
        return len(self._waiters)

    async def request_build(self) -> BuildResult:
        """
        Build now, or wait for the next build if one is already running.

        Never raises for build failures; they are returned as BuildResult(success=False).
        """
        if self.is_building:
            _log_info("Build already in progress, queuing...")
            waiter = asyncio.get_running_loop().create_future()
            self._waiters.append(waiter)
            return await waiter

        # No await between the check above and this assignment
        self.is_building = True
        task = asyncio.get_running_loop().create_task(self._build())
        self._current = task
        task.add_done_callback(self._build_finished)
        # A caller that gives up does not stop the compiler; the flag stays set until it exits
        return await asyncio.shield(task)

    async def drain(self) -> None:
        """Wait until the running build and every scheduled follow-up have finished."""
        while self._follow_ups or self._current is not None:
            pending = list(self._follow_ups)
            if self._current is not None:
                pending.append(self._current)
            await asyncio.gather(*pending, return_exceptions=True)

    def _build_finished(self, task: asyncio.Task) -> None:
        self.is_building = False
        if self._current is task:
            self._current = None
        if task.cancelled():
            # Loop is shutting down; nobody is left to run a follow-up
            waiters, self._waiters = self._waiters, []
            for waiter in waiters:
                waiter.cancel()
            return
        self._schedule_follow_up()

    def _schedule_follow_up(self) -> None:
        if not self._waiters:
            return
        waiters, self._waiters = self._waiters, []
        _log_debug(f"Scheduling follow-up build for {len(waiters)} queued request(s)")
        task = asyncio.get_running_loop().create_task(self._follow_up(waiters))
        self._follow_ups.add(task)
        task.add_done_callback(self._follow_ups.discard)

    async def _follow_up(self, waiters: List[asyncio.Future]) -> None:
        try:
            # Absorb further bursts of change events
            await asyncio.sleep(self.config.debounce_s)
            result = await self.request_build()
        except asyncio.CancelledError:
            for waiter in waiters:
                waiter.cancel()
            raise

        for waiter in waiters:
            # A caller may have given up (e.g. HTTP client disconnected)
            if not waiter.done():
                waiter.set_result(result)

    def _check_preconditions(self) -> None:
        if not self.config.source_path.exists():
            raise MissingSourceError(self.config.source_path)
        if not compiler_available(self.config.compiler):
            raise CompilerUnavailableError(self.config.compiler)

    async def _build(self) -> BuildResult:
        config = self.config
        log_build_start(config.source_path, config.compiler, config.num_passes)
        start_time = time.monotonic()

        try:
            self._check_preconditions()
            output = await self._runner(config.source_path, config)
            result = self._result_from_output(output)
        except BuildError as e:
            result = BuildResult(success=False, error=str(e))
        except Exception as e:
            # Anything unexpected still has to come back as a result
            _log_error(f"Build error: {e!r}")
            result = BuildResult(success=False, error=f"Build error: {e}")

        result.elapsed_s = time.monotonic() - start_time
        log_build_result(result, verbose=self.verbose)
        return result

    def _result_from_output(self, output: CompilerOutput) -> BuildResult:
        config = self.config
        errors, warnings = read_latex_log(config.working_dir / f"{config.source.stem}.log")

        if output.error is not None:
            error = output.error
        elif output.exit_code != 0:
            error = str(CompilationError(output.exit_code, output.stdout, output.stderr))
        else:
            error = None

        result = BuildResult(
            success=error is None,
            exit_code=output.exit_code,
            error=error,
            stdout=output.stdout,
            stderr=output.stderr,
            errors=errors,
            warnings=warnings,
        )

        pdf_path = config.output_path
        if pdf_path.exists():
            result.pdf_path = pdf_path
            result.pdf_size = pdf_path.stat().st_size
            result.page_count = page_count(pdf_path)
        elif result.success:
            _log_warning("PDF file not found after compilation")

        return result
