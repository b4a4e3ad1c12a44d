"""
Alara User Configuration

Hierarchical config system with global defaults + local overrides:
- Global: ~/.alara/config.json (cross-project settings)
- Local: .alara/config.json (project-specific overrides)

Config structure:
{
  "server": {
    "host": "127.0.0.1",
    "port": 4000
  },
  "mutation": {
    "backup_enabled": false,     // Copy files to .alara/backups before writing
    "history_enabled": true      // Record undo history in .alara/history
  },
  "watcher": {
    "enabled": true              // Invalidate the source cache on external edits
  }
}
"""

import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional

from alara.exceptions import ConfigError
from alara.logging_config import logger
from alara.paths import AlaraPaths


DEFAULT_CONFIG = {
    "server": {
        "host": "127.0.0.1",
        "port": 4000,
    },
    "mutation": {
        "backup_enabled": False,
        "history_enabled": True,
    },
    "watcher": {
        "enabled": True,
    },
}


class UserConfig:
    """
    Manages hierarchical user configuration.

    Load order (with override):
    1. Default config (hardcoded)
    2. Global config (~/.alara/config.json)
    3. Local config (.alara/config.json)
    """

    def __init__(self, project_root: Optional[Path] = None, global_config_path: Optional[Path] = None):
        """
        Initialize config manager.

        Args:
            project_root: Project root directory (defaults to CWD)
            global_config_path: Override for the global config file (tests)
        """
        self.project_root = project_root or Path.cwd()
        self.global_config_path = global_config_path or AlaraPaths.GLOBAL_DIR / AlaraPaths.CONFIG_NAME
        self.local_config_path = AlaraPaths(self.project_root).config_file

        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        config = copy.deepcopy(DEFAULT_CONFIG)

        for label, path in (("global", self.global_config_path), ("local", self.local_config_path)):
            if not path.exists():
                continue
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except OSError as e:
                logger.warning(f"Failed to read {label} config: {e}")
                continue
            except ValueError as e:
                raise ConfigError(f"Invalid JSON in {label} config {path}: {e}")

            if not isinstance(data, dict):
                raise ConfigError(f"{label.capitalize()} config {path} must be a JSON object")

            config = self._deep_merge(config, data)
            logger.debug(f"Loaded {label} config from {path}")

        return config

    def _deep_merge(self, base: Dict, override: Dict) -> Dict:
        """
        Deep merge two dictionaries, with override taking precedence.

        Args:
            base: Base dictionary
            override: Override dictionary

        Returns:
            Merged dictionary
        """
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a config value by dot-separated key.

        Examples:
            config.get("server.port")  # 4000
            config.get("watcher.enabled")  # True
        """
        value = self._config

        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value
