"""
HTTP and WebSocket surface of the build server.

Routes:
    GET  /                      dashboard
    POST /api/build             build (or wait for the next build) and broadcast the outcome
    POST /api/clean             delete auxiliary compiler files
    GET  /api/status            artifact and coordinator status
    GET  /api/files             editable source files
    GET  /api/file/{filename}   read a source file
    POST /api/file/{filename}   write a source file
    GET  /<artifact>.pdf        compiled PDF
    WS   /ws                    build_complete / file_changed events, ping/pong
"""

import json
from pathlib import Path
from typing import Callable, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse, PlainTextResponse
from pydantic import BaseModel

from cvbuilder import __version__
from cvbuilder.config import BuildConfig
from cvbuilder.contexts.rendering.cleaner import clean_auxiliary_files
from cvbuilder.contexts.rendering.coordinator import BuildCoordinator
from cvbuilder.contexts.serving.dashboard import DashboardRenderer, list_source_files
from cvbuilder.contexts.serving.logger import _log_error, _log_info, _log_warning
from cvbuilder.contexts.serving.notifier import Notifier, build_complete_event
from cvbuilder.utils.timestamp import mtime_iso


class FileContent(BaseModel):
    content: str


class SourceFileError(ValueError):
    """Requested file name is not an editable source file."""


def resolve_source_file(filename: str, config: BuildConfig) -> Path:
    """
    Map a file name from the URL to a path inside the source directory.

    Raises:
        SourceFileError: If the suffix is not editable or the path escapes the source directory
    """
    source_dir = config.source_dir.resolve()
    path = (source_dir / filename).resolve()
    if path.suffix not in config.source_suffixes:
        raise SourceFileError(
            f"Only {', '.join(config.source_suffixes)} files can be accessed: {filename}"
        )
    if path.parent != source_dir:
        raise SourceFileError(f"File must be inside {config.source_dir.name}/: {filename}")
    return path


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code)


def create_app(
    config: BuildConfig,
    coordinator: Optional[BuildCoordinator] = None,
    notifier: Optional[Notifier] = None,
    lifespan: Optional[Callable] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Build settings shared with the coordinator
        coordinator: Build coordinator (a new one for config if omitted)
        notifier: Subscriber registry for WebSocket events (a new one if omitted)
        lifespan: Optional FastAPI lifespan (starts the watcher in server.py)
    """
    if coordinator is None:
        coordinator = BuildCoordinator(config)
    # An empty Notifier is falsy, so test for None explicitly
    if notifier is None:
        notifier = Notifier()
    dashboard = DashboardRenderer()

    app = FastAPI(title="CV Builder", version=__version__, lifespan=lifespan)
    app.state.config = config
    app.state.coordinator = coordinator
    app.state.notifier = notifier

    # Development server: any origin may call the API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", response_class=HTMLResponse)
    def index():
        return dashboard.render(config)

    @app.post("/api/build")
    async def build():
        try:
            result = await coordinator.request_build()
        except Exception as e:
            _log_error(f"Build request failed: {e!r}")
            return _error(500, str(e))
        await notifier.broadcast(build_complete_event(result))
        return result.to_dict()

    @app.post("/api/clean")
    def clean():
        try:
            result = clean_auxiliary_files(config)
        except OSError as e:
            _log_error(f"Cleanup error: {e}")
            return _error(500, str(e))
        return {
            "success": result.success,
            "message": result.message,
            "deleted": [path.name for path in result.deleted],
            "failed": [path.name for path in result.failed],
        }

    @app.get("/api/status")
    def status():
        try:
            stat = config.output_path.stat()
        except FileNotFoundError:
            stat = None
        return {
            "pdfExists": stat is not None,
            "pdfSize": stat.st_size if stat else 0,
            "lastModified": mtime_iso(stat.st_mtime) if stat else None,
            "isBuilding": coordinator.is_building,
        }

    @app.get("/api/files")
    def files():
        return {"files": [path.name for path in list_source_files(config)]}

    @app.get("/api/file/{filename}")
    def read_file(filename: str):
        try:
            path = resolve_source_file(filename, config)
        except SourceFileError as e:
            return _error(400, str(e))
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return _error(404, "File not found")
        except OSError as e:
            _log_warning(f"Could not read {filename}: {e}")
            return _error(500, str(e))
        return {"content": content}

    @app.post("/api/file/{filename}")
    def write_file(filename: str, body: FileContent):
        try:
            path = resolve_source_file(filename, config)
        except SourceFileError as e:
            return _error(400, str(e))
        try:
            path.write_text(body.content, encoding="utf-8")
        except OSError as e:
            _log_error(f"Could not write {filename}: {e}")
            return _error(500, str(e))
        _log_info(f"Saved {filename}")
        return {"success": True, "message": "File saved"}

    @app.get(f"/{config.output_path.name}")
    def pdf():
        if not config.output_path.is_file():
            return PlainTextResponse("PDF not found. Please build first.", status_code=404)
        return FileResponse(
            config.output_path,
            media_type="application/pdf",
            headers={"Cache-Control": "no-cache"},
        )

    @app.websocket("/ws")
    async def events(websocket: WebSocket):
        await websocket.accept()
        notifier.add(websocket)
        _log_info("Client connected to WebSocket")
        try:
            while True:
                message = await websocket.receive_text()
                try:
                    data = json.loads(message)
                except json.JSONDecodeError as e:
                    _log_warning(f"WebSocket message error: {e}")
                    continue
                if isinstance(data, dict) and data.get("type") == "ping":
                    await websocket.send_json({"type": "pong"})
        except WebSocketDisconnect:
            _log_info("Client disconnected from WebSocket")
        finally:
            notifier.discard(websocket)

    return app
