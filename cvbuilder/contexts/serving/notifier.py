"""
Broadcast of build events to connected dashboard sessions.

Subscribers are WebSocket-like handles: anything with an async send_json()
and Starlette's client_state/application_state attributes.
"""

from typing import Any, Dict, Set

from starlette.websockets import WebSocketDisconnect, WebSocketState

from cvbuilder.contexts.rendering.coordinator import BuildResult
from cvbuilder.contexts.serving.logger import _log_debug


def is_open(subscriber) -> bool:
    """True while both sides of the connection consider it connected."""
    return (
        subscriber.client_state == WebSocketState.CONNECTED
        and subscriber.application_state == WebSocketState.CONNECTED
    )


def build_complete_event(result: BuildResult) -> Dict[str, Any]:
    return {
        "type": "build_complete",
        "success": result.success,
        "message": "Build completed successfully" if result.success else "Build failed",
        "error": result.error,
    }


def file_changed_event(path: str, result: BuildResult) -> Dict[str, Any]:
    return {"type": "file_changed", "file": path, "buildResult": result.to_dict()}


class Notifier:
    """Set of connected subscribers plus a broadcast that tolerates dead connections."""

    def __init__(self):
        self._subscribers: Set[Any] = set()

    def __len__(self) -> int:
        return len(self._subscribers)

    def add(self, subscriber) -> None:
        self._subscribers.add(subscriber)
        _log_debug(f"Subscriber connected ({len(self)} total)")

    def discard(self, subscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.discard(subscriber)
            _log_debug(f"Subscriber disconnected ({len(self)} total)")

    async def broadcast(self, event: Dict[str, Any]) -> int:
        """
        Send event to every open subscriber.

        Closed subscribers, and half-open ones whose send fails, are dropped.

        Returns:
            Number of subscribers the event was delivered to
        """
        delivered = 0
        # Copy: discard() may run while we are suspended in send_json()
        for subscriber in list(self._subscribers):
            if not is_open(subscriber):
                self.discard(subscriber)
                continue
            try:
                await subscriber.send_json(event)
            except (WebSocketDisconnect, RuntimeError, OSError) as e:
                _log_debug(f"Dropping subscriber after failed send: {e!r}")
                self.discard(subscriber)
                continue
            delivered += 1
        return delivered
