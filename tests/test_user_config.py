"""
Tests for UserConfig layering and the .alara path layout.
"""

import json

import pytest

from alara.exceptions import ConfigError
from alara.paths import AlaraPaths, get_paths
from alara.user_config import DEFAULT_CONFIG, UserConfig


def write_json(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


class TestAlaraPaths:

    def test_layout(self, temp_dir):
        paths = AlaraPaths(temp_dir)
        assert paths.alara_dir == temp_dir / ".alara"
        assert paths.config_file == temp_dir / ".alara" / "config.json"
        assert paths.history_dir.name == "history"

    def test_ensure_dirs(self, temp_dir):
        paths = get_paths(temp_dir)
        paths.ensure_dirs()
        for directory in (paths.backups_dir, paths.history_dir, paths.logs_dir):
            assert directory.is_dir()


class TestUserConfig:

    def test_defaults(self, temp_dir):
        config = UserConfig(temp_dir, global_config_path=temp_dir / "missing.json")
        assert config.get("server.port") == 4000
        assert config.get("watcher.enabled") is True
        assert config.get("server.nope", "fallback") == "fallback"
        assert config.get("mutation") == DEFAULT_CONFIG["mutation"]

    def test_local_overrides_global(self, temp_dir):
        global_path = temp_dir / "global.json"
        write_json(global_path, {"server": {"port": 5000, "host": "0.0.0.0"}})
        write_json(AlaraPaths(temp_dir).config_file, {"server": {"port": 6000}})

        config = UserConfig(temp_dir, global_config_path=global_path)

        assert config.get("server.port") == 6000
        assert config.get("server.host") == "0.0.0.0"
        assert config.get("mutation.history_enabled") is True

    def test_invalid_json_raises(self, temp_dir):
        config_file = AlaraPaths(temp_dir).config_file
        config_file.parent.mkdir(parents=True)
        config_file.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid JSON in local config"):
            UserConfig(temp_dir, global_config_path=temp_dir / "missing.json")

    def test_non_object_config_raises(self, temp_dir):
        global_path = temp_dir / "global.json"
        write_json(global_path, [1, 2])

        with pytest.raises(ConfigError, match="must be a JSON object"):
            UserConfig(temp_dir, global_config_path=global_path)
