"""
Dev server: websocket transport for transform requests.
"""

from .server import create_app, run_server
from .handler import ConnectionHandler
from .watcher import SourceWatcher
from .config import SERVER_CONFIG, WATCHER_CONFIG

__all__ = [
    "create_app",
    "run_server",
    "ConnectionHandler",
    "SourceWatcher",
    "SERVER_CONFIG",
    "WATCHER_CONFIG",
]
