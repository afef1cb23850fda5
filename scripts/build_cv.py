#!/usr/bin/env python3
"""
CV Build CLI

Compiles the CV once, watches the sources and rebuilds on change, cleans
auxiliary files, or opens the compiled PDF.

Examples:\n

    build_cv.py                 # Build once

    build_cv.py --watch         # Build once, then rebuild on every source change

    build_cv.py --clean         # Remove auxiliary files (.aux, .log, ...)

    build_cv.py --clean --all   # Also remove the PDF

    build_cv.py --open          # Open the PDF in the default viewer
"""

import asyncio
from pathlib import Path

import typer
from typing_extensions import Annotated

from cvbuilder.config import BuildConfig
from cvbuilder.contexts.rendering import (
    BuildCoordinator,
    BuildResult,
    clean_all,
    clean_auxiliary_files,
)
from cvbuilder.contexts.watching import SourceWatcher
from cvbuilder.utils.logger import setup_logger
from cvbuilder.utils.timestamp import format_size_kb, now

app = typer.Typer(
    help="Build the LaTeX CV to PDF, optionally watching the sources",
    add_completion=False,
)


def report(result: BuildResult, path: str = "") -> None:
    """Print a build result; used after one-off builds and after every watched change."""
    prefix = f"{path}: " if path else ""
    if result.success:
        size = f" ({format_size_kb(result.pdf_size)})" if result.pdf_size is not None else ""
        typer.secho(f"✓ {prefix}Build succeeded{size}", fg=typer.colors.GREEN, bold=True)
    else:
        typer.secho(f"✗ {prefix}Build failed: {result.error}", fg=typer.colors.RED, bold=True)
        for error in result.errors[:10]:
            typer.secho(f"  - {error}", fg=typer.colors.RED)
        if len(result.errors) > 10:
            typer.echo(f"  ... and {len(result.errors) - 10} more")


async def build_once(config: BuildConfig, verbose: bool) -> BuildResult:
    return await BuildCoordinator(config, verbose=verbose).request_build()


async def watch(config: BuildConfig, verbose: bool) -> None:
    """Build once, then rebuild on every change until interrupted."""
    coordinator = BuildCoordinator(config, verbose=verbose)
    report(await coordinator.request_build())

    watcher = SourceWatcher(coordinator, on_result=report)
    watcher.start(asyncio.get_running_loop())
    typer.secho("Watching for changes. Press Ctrl+C to stop.", fg=typer.colors.BLUE)
    try:
        await asyncio.Event().wait()
    finally:
        watcher.stop()
        await coordinator.drain()


@app.command()
def main(
    watch_mode: Annotated[
        bool,
        typer.Option("--watch", "-w", help="Build once, then rebuild whenever a source changes"),
    ] = False,
    clean: Annotated[
        bool,
        typer.Option("--clean", "-c", help="Remove auxiliary compiler files"),
    ] = False,
    clean_pdf: Annotated[
        bool,
        typer.Option("--all", help="With --clean, also remove the compiled PDF"),
    ] = False,
    open_pdf: Annotated[
        bool,
        typer.Option("--open", "-o", help="Open the compiled PDF in the default viewer"),
    ] = False,
    working_dir: Annotated[
        Path,
        typer.Option("--dir", "-d", help="Project directory (contains src/)", file_okay=False),
    ] = Path("."),
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show detailed compilation output"),
    ] = False,
):
    """Build the CV (default), watch, clean, or open the PDF."""
    config = BuildConfig(working_dir=working_dir)
    setup_logger(
        context_name="build",
        log_dir=config.logs_dir / f"build_{now()}",
        extra_provenance={"LaTeX compiler": config.compiler},
        verbose=verbose,
    )

    if clean:
        result = clean_all(config) if clean_pdf else clean_auxiliary_files(config)
        typer.echo(result.message)
        raise typer.Exit(code=0 if result.success else 1)

    if open_pdf:
        if not config.output_path.exists():
            typer.secho(f"PDF not found: {config.output_path}", fg=typer.colors.YELLOW, err=True)
            raise typer.Exit(code=1)
        typer.launch(str(config.output_path))
        typer.echo("Opened PDF in default viewer")
        raise typer.Exit(code=0)

    if watch_mode:
        try:
            asyncio.run(watch(config, verbose))
        except KeyboardInterrupt:
            typer.echo("\nStopped watching.")
        raise typer.Exit(code=0)

    result = asyncio.run(build_once(config, verbose))
    report(result)
    raise typer.Exit(code=0 if result.success else 1)


if __name__ == "__main__":
    app()
