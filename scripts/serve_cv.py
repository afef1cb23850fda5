#!/usr/bin/env python3
"""
CV Build Server CLI

Serves the dashboard, HTTP API and WebSocket notifications, and rebuilds the CV
whenever a source file changes.

Examples:\n

    serve_cv.py                      # http://localhost:3000, opens the browser

    PORT=8080 serve_cv.py            # Port from the environment

    serve_cv.py --port 8080 --no-browser
"""

from pathlib import Path

import typer
from typing_extensions import Annotated

from cvbuilder.config import PORT, BuildConfig
from cvbuilder.contexts.rendering import CompilerUnavailableError
from cvbuilder.contexts.serving import run_server
from cvbuilder.utils.logger import setup_logger
from cvbuilder.utils.timestamp import now

app = typer.Typer(help="Serve the CV build dashboard", add_completion=False)


@app.command()
def main(
    port: Annotated[
        int,
        typer.Option("--port", "-p", envvar="PORT", help="Port to listen on"),
    ] = PORT,
    host: Annotated[
        str,
        typer.Option("--host", help="Interface to bind"),
    ] = "127.0.0.1",
    working_dir: Annotated[
        Path,
        typer.Option("--dir", "-d", help="Project directory (contains src/)", file_okay=False),
    ] = Path("."),
    no_browser: Annotated[
        bool,
        typer.Option("--no-browser", help="Do not open the dashboard in a browser"),
    ] = False,
    no_watch: Annotated[
        bool,
        typer.Option("--no-watch", help="Do not rebuild on source changes"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show detailed compilation and server output"),
    ] = False,
):
    """Start the build server."""
    config = BuildConfig(working_dir=working_dir)
    setup_logger(
        context_name="serve",
        log_dir=config.logs_dir / f"serve_{now()}",
        extra_provenance={"LaTeX compiler": config.compiler, "Port": port},
        verbose=verbose,
    )

    try:
        run_server(
            config,
            host=host,
            port=port,
            open_browser=not no_browser,
            watch=not no_watch,
            verbose=verbose,
        )
    except CompilerUnavailableError as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
