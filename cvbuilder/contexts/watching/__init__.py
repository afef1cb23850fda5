"""
Watching Context

Responsibilities:
- Observes the CV source files
- Requests a build when a watched file is added or changed

Owns: the filesystem observer
Never: Runs the compiler directly
"""

from cvbuilder.contexts.watching.watcher import SourceWatcher, matches_watch_patterns

__all__ = ["SourceWatcher", "matches_watch_patterns"]
