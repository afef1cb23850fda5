"""
Integration tests with real collaborators: a live watchdog observer, the server
lifespan, and (when installed) lualatex.
"""

import asyncio
import shutil
import threading
import time

import pytest
from fastapi.testclient import TestClient

from cvbuilder.contexts.rendering.coordinator import BuildCoordinator
from cvbuilder.contexts.serving.api import create_app
from cvbuilder.contexts.serving.notifier import Notifier
from cvbuilder.contexts.serving.server import build_lifespan
from cvbuilder.contexts.watching.watcher import SourceWatcher

LUALATEX_AVAILABLE = shutil.which("lualatex") is not None
skip_if_no_lualatex = pytest.mark.skipif(
    not LUALATEX_AVAILABLE,
    reason="lualatex not installed - install TeX Live, MiKTeX, or MacTeX",
)


@pytest.mark.integration
def test_editing_a_source_triggers_a_build(config, fake_runner):
    coordinator = BuildCoordinator(config, runner=fake_runner)
    seen = []

    async def scenario():
        done = asyncio.Event()

        def on_result(result, path):
            seen.append((path, result.success))
            done.set()

        watcher = SourceWatcher(coordinator, on_result=on_result)
        watcher.start()
        try:
            assert watcher.is_running
            # Give the observer a moment to register its watches
            await asyncio.sleep(0.2)
            config.source_path.write_text("\\documentclass{article}\n% edited\n")
            await asyncio.wait_for(done.wait(), timeout=10)
        finally:
            watcher.stop()
        await coordinator.drain()

    asyncio.run(scenario())

    assert seen[0] == ("src/cv.tex", True)
    assert 1 <= fake_runner.calls <= 2


@pytest.mark.integration
def test_watcher_start_with_missing_source_dir(config, fake_runner):
    shutil.rmtree(config.source_dir)
    watcher = SourceWatcher(BuildCoordinator(config, runner=fake_runner))

    async def scenario():
        watcher.start()
        watcher.stop()

    asyncio.run(scenario())

    assert watcher.is_running is False


class RecordingNotifier(Notifier):
    """Notifier that signals another thread once an event has been sent."""

    def __init__(self):
        super().__init__()
        self.events = []
        self.sent = threading.Event()

    async def broadcast(self, event: dict) -> int:
        delivered = await super().broadcast(event)
        self.events.append((event, delivered))
        self.sent.set()
        return delivered


@pytest.mark.integration
def test_server_lifespan_broadcasts_file_changes(config, fake_runner):
    coordinator = BuildCoordinator(config, runner=fake_runner)
    notifier = RecordingNotifier()
    app = create_app(
        config,
        coordinator=coordinator,
        notifier=notifier,
        lifespan=build_lifespan(coordinator, notifier, watch=True),
    )

    with TestClient(app) as client:
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}

            # Let the observer register its watches
            time.sleep(0.2)
            config.source_path.write_text("\\documentclass{article}\n% edited via editor\n")

            # Bounded wait: once the broadcast returned, the event is queued on the socket
            assert notifier.sent.wait(timeout=10), "no file_changed broadcast"
            assert notifier.events[0][1] == 1
            event = ws.receive_json()
            assert event["type"] == "file_changed"
            assert event["file"] == "src/cv.tex"
            assert event["buildResult"]["success"] is True


@pytest.mark.integration
@pytest.mark.latex
@skip_if_no_lualatex
def test_real_lualatex_build(config):
    config.compiler = "lualatex"

    result = asyncio.run(BuildCoordinator(config).request_build())

    assert result.success, f"Compilation failed with errors: {result.errors}"
    assert config.output_path.exists()
    assert result.pdf_size == config.output_path.stat().st_size
    assert result.page_count == 1


@pytest.mark.integration
@pytest.mark.latex
@skip_if_no_lualatex
def test_real_lualatex_error(config):
    config.compiler = "lualatex"
    config.source_path.write_text(
        "\\documentclass{article}\n\\begin{document}\n\\undefinedcommand{x}\n\\end{document}\n"
    )

    result = asyncio.run(BuildCoordinator(config).request_build())

    assert result.success is False
    assert any("Undefined control sequence" in error for error in result.errors)
