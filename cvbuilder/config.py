"""
Build configuration.

Defaults come from the environment (optionally a .env file in the working
directory) and are bundled into a BuildConfig that every context receives.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv

load_dotenv()

CV_SOURCE = os.getenv("CV_SOURCE", "src/cv.tex")
LATEX_COMPILER = os.getenv("LATEX_COMPILER", "lualatex")
# Trailing ':' keeps the compiler's default search path
CV_TEXINPUTS = os.getenv("CV_TEXINPUTS", "./src/:./src/fonts/:")
BUILD_DEBOUNCE_S = float(os.getenv("BUILD_DEBOUNCE_S", "0.1"))
LATEX_PASSES = int(os.getenv("LATEX_PASSES", "1"))
LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))
PORT = int(os.getenv("PORT", "3000"))

WATCH_PATTERNS = ("src/*.tex", "src/*.cls", "src/*.sty")

# Files the compiler leaves next to the PDF
AUX_SUFFIXES = (
    ".aux",
    ".log",
    ".out",
    ".fdb_latexmk",
    ".fls",
    ".synctex.gz",
    ".toc",
    ".lof",
    ".lot",
    ".bbl",
    ".blg",
    ".idx",
    ".ilg",
    ".ind",
    ".nav",
    ".snm",
    ".vrb",
)

# Files that may be read and written through the API
SOURCE_SUFFIXES = (".tex", ".cls", ".sty")


@dataclass
class BuildConfig:
    """
    Settings shared by the rendering, watching and serving contexts.

    Attributes:
        working_dir: Directory the compiler runs in; the PDF and auxiliary files land here
        source: Main LaTeX file, relative to working_dir
        compiler: Compiler executable name or path
        texinputs: TEXINPUTS value for the compiler process only
        num_passes: Compiler passes per build
        debounce_s: Delay before a coalesced follow-up build
        watch_patterns: Globs (relative to working_dir) that trigger rebuilds
        aux_suffixes: Suffixes removed by cleanup
        source_suffixes: Suffixes editable through the API
        logs_path: Session log root; relative paths resolve against working_dir
    """

    working_dir: Path = field(default_factory=Path.cwd)
    source: Path = Path(CV_SOURCE)
    compiler: str = LATEX_COMPILER
    texinputs: str = CV_TEXINPUTS
    num_passes: int = LATEX_PASSES
    debounce_s: float = BUILD_DEBOUNCE_S
    watch_patterns: Tuple[str, ...] = WATCH_PATTERNS
    aux_suffixes: Tuple[str, ...] = AUX_SUFFIXES
    source_suffixes: Tuple[str, ...] = SOURCE_SUFFIXES
    logs_path: Path = LOGS_PATH

    def __post_init__(self):
        self.working_dir = Path(self.working_dir).resolve()
        self.source = Path(self.source)
        self.logs_path = Path(self.logs_path)

    @property
    def source_path(self) -> Path:
        return self.working_dir / self.source

    @property
    def source_dir(self) -> Path:
        return self.source_path.parent

    @property
    def output_path(self) -> Path:
        """The compiler writes <source stem>.pdf into the working directory."""
        return self.working_dir / f"{self.source.stem}.pdf"

    @property
    def logs_dir(self) -> Path:
        return self.working_dir / self.logs_path
