"""Shared fixtures: a throwaway CV project and stand-ins for the LaTeX compiler."""

import asyncio
import stat
import sys
from pathlib import Path

import pytest

from cvbuilder.config import BuildConfig
from cvbuilder.contexts.rendering.compiler import CompilerOutput

MINIMAL_CV = r"""\documentclass{article}
\begin{document}
Jane Doe
\end{document}
"""


class FakeRunner:
    """
    Async stand-in for run_compiler that records how it was used.

    Writes "<stem>.pdf" into the working directory on success so artifact
    checks see a real file.
    """

    def __init__(self, delay: float = 0.05, exit_code: int = 0, log_text: str = ""):
        self.delay = delay
        self.exit_code = exit_code
        self.log_text = log_text
        self.calls = 0
        self.active = 0
        self.max_active = 0

    async def __call__(self, source: Path, config: BuildConfig) -> CompilerOutput:
        self.calls += 1
        run = self.calls
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
            if self.log_text:
                (config.working_dir / f"{source.stem}.log").write_text(self.log_text)
            if self.exit_code == 0:
                config.output_path.write_bytes(b"%%PDF-1.4 fake run %d" % run)
            return CompilerOutput(exit_code=self.exit_code, stdout=f"run {run}", stderr="")
        finally:
            self.active -= 1


@pytest.fixture
def project(tmp_path):
    """Project directory with src/cv.tex."""
    src = tmp_path / "src"
    src.mkdir()
    (src / "cv.tex").write_text(MINIMAL_CV)
    return tmp_path


@pytest.fixture
def config(project):
    # Any resolvable executable passes the availability check; FakeRunner never runs it
    return BuildConfig(working_dir=project, compiler=sys.executable, debounce_s=0.01)


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def write_compiler(tmp_path):
    """Factory writing an executable shell script that plays the compiler."""

    def _write(body: str, name: str = "fake-latex") -> str:
        script = tmp_path / "bin" / name
        script.parent.mkdir(exist_ok=True)
        script.write_text("#!/bin/sh\n" + body)
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(script)

    return _write


@pytest.fixture
def make_runner():
    """Factory for FakeRunner with custom delay, exit code or log text."""
    return FakeRunner
