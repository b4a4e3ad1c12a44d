"""
Filesystem watcher that invalidates parsed-source cache entries when a
project file changes outside the engine.
"""

from fnmatch import fnmatch
from pathlib import Path
from typing import Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from alara.logging_config import logger
from alara.mutation.facade import MutationEngine
from .config import WATCHER_CONFIG


class InvalidatingEventHandler(FileSystemEventHandler):
    """Invalidate the engine's cache for every relevant file event."""

    def __init__(self, engine: MutationEngine, config: Optional[dict] = None):
        self.engine = engine
        self.config = {**WATCHER_CONFIG, **(config or {})}
        self.events_processed = 0

    def should_ignore_path(self, rel_path: str) -> bool:
        rel_path = rel_path.replace("\\", "/")
        if any(fnmatch(rel_path, pattern) for pattern in self.config["ignore_patterns"]):
            return True
        name = Path(rel_path).name
        return not any(fnmatch(name, pattern) for pattern in self.config["watch_patterns"])

    def _invalidate(self, src_path: str):
        path = Path(src_path)
        try:
            rel_path = path.resolve().relative_to(self.engine.project_dir)
        except ValueError:
            return

        if self.should_ignore_path(rel_path.as_posix()):
            return

        self.events_processed += 1
        self.engine.invalidate(path.resolve())

    def on_any_event(self, event: FileSystemEvent):
        if event.is_directory:
            return
        logger.debug(f"Event: {event.event_type} - {event.src_path}")
        self._invalidate(event.src_path)
        dest_path = getattr(event, "dest_path", None)
        if dest_path:
            self._invalidate(dest_path)


class SourceWatcher:
    """Runs a watchdog observer over the project directory."""

    def __init__(self, engine: MutationEngine, config: Optional[dict] = None):
        self.engine = engine
        self.handler = InvalidatingEventHandler(engine, config)
        self._observer = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def start(self):
        if self.is_running:
            return
        self._observer = Observer()
        self._observer.schedule(
            self.handler,
            str(self.engine.project_dir),
            recursive=self.handler.config["recursive"],
        )
        self._observer.start()
        logger.info(f"Watching {self.engine.project_dir} for external edits")

    def stop(self, timeout: float = 5.0):
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout)
        self._observer = None
        logger.debug("File watcher stopped")
