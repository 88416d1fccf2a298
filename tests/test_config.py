"""
Tests for settings loading — file discovery, env overrides, validation.
"""

from pathlib import Path

import pytest

from installforge.core.config.loader import (
    ConfigError,
    Settings,
    find_settings_file,
    load_settings,
)


class TestFindSettingsFile:
    def test_walks_up(self, tmp_path):
        (tmp_path / "installforge.yml").write_text("port: 9000\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_settings_file(nested) == (tmp_path / "installforge.yml").resolve()



class TestLoadSettings:
    def test_defaults(self, tmp_path):
        path = tmp_path / "installforge.yml"
        path.write_text("")
        settings = load_settings(path, env={})
        assert settings.host == "127.0.0.1"
        assert settings.port == 8080
        assert settings.log_level == "WARNING"
        assert settings.data_root == tmp_path / "data/projects"

    def test_file_values(self, tmp_path):
        path = tmp_path / "installforge.yml"
        path.write_text("data_root: /srv/projects\nport: 9000\nlog_level: DEBUG\n")
        settings = load_settings(path, env={})
        assert settings.data_root == Path("/srv/projects")
        assert settings.port == 9000
        assert settings.log_level == "DEBUG"

    def test_env_overrides_file(self, tmp_path):
        path = tmp_path / "installforge.yml"
        path.write_text("port: 9000\n")
        settings = load_settings(path, env={"PORT": "7000", "INSTALLFORGE_DATA_ROOT": "/data"})
        assert settings.port == 7000
        assert settings.data_root == Path("/data")

    def test_relative_data_root_anchored(self, tmp_path):
        path = tmp_path / "installforge.yml"
        path.write_text("data_root: store\n")
        assert load_settings(path, env={}).data_root == tmp_path / "store"

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_settings(tmp_path / "missing.yml", env={})

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "installforge.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_settings(path, env={})

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "installforge.yml"
        path.write_text("port: [\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_settings(path, env={})

    def test_invalid_value(self, tmp_path):
        path = tmp_path / "installforge.yml"
        path.write_text("port: many\n")
        with pytest.raises(ConfigError, match="Invalid settings"):
            load_settings(path, env={})


class TestSettingsModel:
    def test_port_coerced(self):
        assert Settings.model_validate({"port": "8081"}).port == 8081
