"""
Configuration for source mutation.

Paths are resolved at runtime relative to the project's .alara/ directory.
"""

from pathlib import Path
from typing import Optional

from alara.paths import get_paths


def get_mutation_config(project_root: Optional[Path] = None):
    """
    Get mutation configuration with dynamic paths.

    Args:
        project_root: Project directory. Defaults to the current directory.
    """
    paths = get_paths(project_root)
    return {
        "backup_enabled": False,
        "backup_dir": str(paths.backups_dir),
        "history_enabled": True,
        "history_dir": str(paths.history_dir),
        "history_limit": 50,
        "encoding": "utf-8",
        "rule_line_tolerance": 10,
    }


MUTATION_CONFIG = get_mutation_config()

# File extension -> tree-sitter grammar used for markup lookup
MARKUP_LANGUAGES = {
    ".tsx": "tsx",
    ".ts": "typescript",
    ".jsx": "javascript",
    ".js": "javascript",
}

STYLE_EXTENSIONS = (".css",)
