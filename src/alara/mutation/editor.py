"""
SourceWriter: persist mutated source files safely.

Atomic writes (temp file + rename), optional timestamped backups, line
ending preservation and an optimistic check that the file did not change
between our read and our write.
"""

import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

from alara.exceptions import TransformFailure
from alara.logging_config import logger
from alara.schemas import ErrorCode
from .cache import content_digest
from .config import MUTATION_CONFIG


class SourceWriter:
    """
    Write mutated sources back to disk.

    Features:
    - Optional backups before edits
    - Atomic writes (temp file + rename)
    - Line ending preservation (LF/CRLF)
    - Optimistic locking against concurrent external edits
    """

    def __init__(self, config: Optional[dict] = None):
        """
        Args:
            config: Optional config overrides (merges with MUTATION_CONFIG)
        """
        self.config = {**MUTATION_CONFIG, **(config or {})}

    def write(self, file_path: Path, content: str, expected_digest: Optional[str] = None) -> Tuple[str, Optional[str]]:
        """
        Replace a file's content.

        Args:
            file_path: Target file
            content: New full content
            expected_digest: Digest of the content the edit was computed from.
                When given and the file no longer matches, nothing is written.

        Returns:
            (written content, backup path or None)

        Raises:
            TransformFailure: WRITE_ERROR when the file changed or the write failed
        """
        path = Path(file_path)
        encoding = self.config["encoding"]

        try:
            current = path.read_bytes().decode(encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise TransformFailure(ErrorCode.WRITE_ERROR, f"Failed to read {path}: {e}")

        if expected_digest is not None and content_digest(current) != expected_digest:
            raise TransformFailure(
                ErrorCode.WRITE_ERROR,
                f"{path} changed on disk while the edit was being applied",
                {"file": str(path)},
            )

        backup_path = None
        if self.config["backup_enabled"]:
            backup_path = self.create_backup(path)

        content = self._normalize_line_endings(content, self._detect_line_ending(current))

        try:
            self._atomic_write(path, content, encoding)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            if backup_path:
                self._restore_backup(backup_path, path)
            raise TransformFailure(ErrorCode.WRITE_ERROR, f"Failed to write {path}: {e}")

        logger.info(f"Wrote {path}")
        return content, backup_path

    def create_backup(self, path: Path) -> Optional[str]:
        """
        Create a timestamped backup of a file.

        Returns:
            Path to the backup, or None if it could not be made
        """
        backup_dir = Path(self.config["backup_dir"])
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        backup_path = backup_dir / f"{path.name}.{timestamp}.backup"

        try:
            backup_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(str(path), str(backup_path))
            logger.debug(f"Created backup: {backup_path}")
            return str(backup_path)
        except OSError as e:
            logger.warning(f"Failed to create backup: {e}")
            return None

    def _atomic_write(self, path: Path, content: str, encoding: str):
        # Temp file in the target directory keeps the rename on one filesystem
        fd, temp_path = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content.encode(encoding))
            if path.exists():
                shutil.copymode(str(path), temp_path)
            os.replace(temp_path, str(path))
        except OSError:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise

    def _restore_backup(self, backup_path: str, target: Path):
        try:
            shutil.copy2(backup_path, str(target))
            logger.info(f"Restored {target} from backup")
        except OSError as e:
            logger.error(f"Failed to restore backup: {e}")

    @staticmethod
    def _detect_line_ending(content: str) -> str:
        return "\r\n" if "\r\n" in content else "\n"

    @staticmethod
    def _normalize_line_endings(content: str, line_ending: str) -> str:
        content = content.replace("\r\n", "\n")
        if line_ending == "\r\n":
            content = content.replace("\n", "\r\n")
        return content
