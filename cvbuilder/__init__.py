"""
cvbuilder - LaTeX CV build helper

Compiles a LaTeX curriculum vitae with an external compiler, rebuilds it when the
sources change, and serves a small dashboard for triggering builds and previewing
the PDF.

Architecture:
- Rendering Context: compiler invocation, build serialization, cleanup
- Watching Context: source file change detection
- Serving Context: HTTP API, WebSocket notifications, dashboard
"""

__version__ = "0.1.0"
