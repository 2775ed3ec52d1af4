"""HTTP API for driving :class:`minibf.VisualizerSession` debuggers remotely."""

from .app import create_app
from .session import SessionRecord, SessionStore

__all__ = [
    "create_app",
    "SessionRecord",
    "SessionStore",
]
