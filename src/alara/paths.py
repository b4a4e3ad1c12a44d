"""
Alara Path Configuration

Centralized path management for Alara data files.
All paths are relative to the project root (current working directory).

Directory Structure:
.alara/
├── config.json          # Local config overrides
├── backups/             # Pre-mutation backups
├── history/             # Undo history (one JSON file per transform)
└── logs/                # Log files
"""

from pathlib import Path
from typing import Optional


class AlaraPaths:
    """
    Centralized path configuration for Alara.

    All paths are lazily resolved relative to project_root.
    Default project_root is current working directory.
    """

    ALARA_DIR = ".alara"
    GLOBAL_DIR = Path.home() / ".alara"

    CONFIG_NAME = "config.json"

    BACKUPS_DIR = "backups"
    HISTORY_DIR = "history"
    LOGS_DIR = "logs"

    def __init__(self, project_root: Optional[Path] = None):
        self._project_root = project_root

    @property
    def project_root(self) -> Path:
        """Get the project root directory."""
        if self._project_root is None:
            return Path.cwd()
        return self._project_root

    @property
    def alara_dir(self) -> Path:
        return self.project_root / self.ALARA_DIR

    @property
    def config_file(self) -> Path:
        return self.alara_dir / self.CONFIG_NAME

    @property
    def backups_dir(self) -> Path:
        return self.alara_dir / self.BACKUPS_DIR

    @property
    def history_dir(self) -> Path:
        return self.alara_dir / self.HISTORY_DIR

    @property
    def logs_dir(self) -> Path:
        return self.alara_dir / self.LOGS_DIR

    def ensure_dirs(self) -> None:
        """Create the .alara directory tree if missing."""
        for directory in (self.alara_dir, self.backups_dir, self.history_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)


_default_paths: Optional[AlaraPaths] = None


def get_paths(project_root: Optional[Path] = None) -> AlaraPaths:
    """
    Get paths for a project root, or the CWD-relative default instance.

    Args:
        project_root: Optional project root. A new instance is returned when given.
    """
    global _default_paths
    if project_root is not None:
        return AlaraPaths(project_root)
    if _default_paths is None:
        _default_paths = AlaraPaths()
    return _default_paths
