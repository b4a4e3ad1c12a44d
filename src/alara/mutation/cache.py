"""
SourceCache: parsed-file cache owned by a MutationEngine.

Every lookup re-reads the file and compares a content digest with the cached
entry, so an external edit is never overwritten from a stale tree.
"""

import hashlib
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from alara.logging_config import logger


@dataclass
class CachedSource:
    path: Path
    text: str
    digest: str
    parsed: Any


def content_digest(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class SourceCache:
    """
    Cache of parsed sources keyed by (path, kind).

    The file watcher calls invalidate() from its own thread, hence the lock.
    """

    def __init__(self):
        self._entries: Dict[Tuple[Path, str], CachedSource] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def load(
        self,
        path: Path,
        kind: str,
        parse: Callable[[str], Any],
        encoding: str = "utf-8",
    ) -> CachedSource:
        """
        Return the parsed file, re-parsing when the on-disk content changed.

        Raises:
            FileNotFoundError, OSError, UnicodeDecodeError from reading the file
        """
        path = Path(path).resolve()
        text = path.read_bytes().decode(encoding)
        digest = content_digest(text)
        key = (path, kind)

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.digest == digest:
                self.hits += 1
                return entry
            if entry is not None:
                logger.debug(f"{path} changed on disk, reparsing")

        self.misses += 1
        entry = CachedSource(path=path, text=text, digest=digest, parsed=parse(text))
        with self._lock:
            self._entries[key] = entry
        return entry

    def update(self, path: Path, kind: str, text: str, parsed: Any) -> CachedSource:
        """Record content we just wrote ourselves."""
        path = Path(path).resolve()
        entry = CachedSource(path=path, text=text, digest=content_digest(text), parsed=parsed)
        with self._lock:
            self._entries[(path, kind)] = entry
        return entry

    def invalidate(self, path: Optional[Path] = None) -> int:
        """
        Drop cached entries for one file, or everything when path is None.

        Returns:
            Number of entries removed
        """
        with self._lock:
            if path is None:
                count = len(self._entries)
                self._entries.clear()
            else:
                resolved = Path(path).resolve()
                keys = [key for key in self._entries if key[0] == resolved]
                for key in keys:
                    del self._entries[key]
                count = len(keys)
        if count:
            logger.debug(f"Invalidated {count} cache entr{'y' if count == 1 else 'ies'}")
        return count

    def __contains__(self, path) -> bool:
        resolved = Path(path).resolve()
        with self._lock:
            return any(key[0] == resolved for key in self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
