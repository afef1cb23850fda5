"""
Serving Context

Responsibilities:
- HTTP API for building, cleaning, status and source file access
- WebSocket notifications to dashboard sessions
- Dashboard page
- Server lifecycle (compiler check, watcher, uvicorn)

Owns: connected subscriber sessions
Never: Serializes builds itself (delegates to the rendering context)
"""

from cvbuilder.contexts.serving.api import create_app
from cvbuilder.contexts.serving.notifier import Notifier
from cvbuilder.contexts.serving.server import create_server_app, run_server

__all__ = ["Notifier", "create_app", "create_server_app", "run_server"]
