"""
Build server lifecycle.

Checks the compiler, wires coordinator, watcher and notifier together, and runs
the FastAPI application under uvicorn.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

import typer
import uvicorn
from fastapi import FastAPI

from cvbuilder.config import PORT, BuildConfig
from cvbuilder.contexts.rendering.compiler import check_compiler
from cvbuilder.contexts.rendering.coordinator import BuildCoordinator, BuildResult
from cvbuilder.contexts.rendering.exceptions import CompilerUnavailableError
from cvbuilder.contexts.serving.api import create_app
from cvbuilder.contexts.serving.logger import _log_info, _log_success, _log_warning
from cvbuilder.contexts.serving.notifier import Notifier, file_changed_event
from cvbuilder.contexts.watching.watcher import SourceWatcher

BROWSER_DELAY_S = 1.0


def _open_browser(url: str) -> None:
    if typer.launch(url) != 0:
        _log_warning(f"Could not auto-open browser: {url}")


def build_lifespan(
    coordinator: BuildCoordinator,
    notifier: Notifier,
    watch: bool = True,
    browser_url: Optional[str] = None,
):
    """
    Lifespan that runs the source watcher for as long as the app is up.

    Builds triggered by file changes are broadcast as file_changed events.
    """

    async def forward_file_change(result: BuildResult, path: str) -> None:
        await notifier.broadcast(file_changed_event(path, result))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        loop = asyncio.get_running_loop()
        watcher = None
        if watch:
            watcher = SourceWatcher(coordinator, on_result=forward_file_change)
            watcher.start(loop)
        if browser_url:
            loop.call_later(BROWSER_DELAY_S, _open_browser, browser_url)
        try:
            yield
        finally:
            if watcher is not None:
                watcher.stop()
            await coordinator.drain()
            _log_info("Server stopped")

    return lifespan


def create_server_app(
    config: BuildConfig,
    watch: bool = True,
    browser_url: Optional[str] = None,
    verbose: bool = False,
) -> FastAPI:
    coordinator = BuildCoordinator(config, verbose=verbose)
    notifier = Notifier()
    lifespan = build_lifespan(coordinator, notifier, watch=watch, browser_url=browser_url)
    return create_app(config, coordinator=coordinator, notifier=notifier, lifespan=lifespan)


def run_server(
    config: BuildConfig,
    host: str = "127.0.0.1",
    port: int = PORT,
    open_browser: bool = True,
    watch: bool = True,
    verbose: bool = False,
) -> None:
    """
    Start the build server and block until it is stopped.

    Raises:
        CompilerUnavailableError: If the compiler cannot be run
    """
    if asyncio.run(check_compiler(config.compiler)) is None:
        raise CompilerUnavailableError(config.compiler)

    url = f"http://localhost:{port}"
    app = create_server_app(
        config,
        watch=watch,
        browser_url=url if open_browser else None,
        verbose=verbose,
    )

    _log_success("CV Builder Server starting")
    _log_info(f"Dashboard: {url}")
    _log_info(f"PDF: {url}/{config.output_path.name}")
    if watch:
        _log_info("File watching enabled")

    # loguru handles our logging; keep uvicorn's own output terse
    uvicorn.run(app, host=host, port=port, log_level="info" if verbose else "warning")
