"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from field_sync.utils.config import Config, get_config, get_fieldsync_dir, reset_config


class TestConfigDefaults:
    def test_defaults(self) -> None:
        config = Config()
        assert config.sync_threshold_hours == 24.0
        assert config.id_field == "resource_id"
        assert config.fixed_assets_only is True
        assert config.storage_backend == "sqlite"

    def test_database_path_defaults_to_data_dir(self) -> None:
        assert Config().database_path == get_fieldsync_dir() / "fieldsync.db"


class TestConfigSources:
    """Defaults, TOML, then environment."""

    def test_toml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text(
            'remote_url = "https://api.example.com/graphql"\n'
            "sync_threshold_hours = 12\n"
            'cors_origins = ["https://app.example.com"]\n'
            "unknown_key = 1\n"
        )

        config = Config.load(path)

        assert config.remote_url == "https://api.example.com/graphql"
        assert config.sync_threshold_hours == 12.0
        assert config.cors_origins == ["https://app.example.com"]

    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "config.toml"
        path.write_text("port = 9000\n")
        monkeypatch.setenv("FIELD_SYNC_PORT", "9100")
        monkeypatch.setenv("FIELD_SYNC_FIXED_ASSETS_ONLY", "false")

        config = Config.load(path)

        assert config.port == 9100
        assert config.fixed_assets_only is False

    def test_invalid_value_is_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FIELD_SYNC_PORT", "not-a-port")
        assert Config.from_env().port == 8000

    def test_comma_separated_list(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FIELD_SYNC_CORS_ORIGINS", "http://a.test, http://b.test")
        assert Config.from_env().cors_origins == ["http://a.test", "http://b.test"]

    def test_broken_toml_falls_back_to_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("this is = = not toml")
        assert Config.load(path).port == 8000

    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        assert Config.load(tmp_path / "absent.toml") == Config()


class TestProcessConfig:
    def test_get_config_is_cached_until_reset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        first = get_config()
        assert get_config() is first

        monkeypatch.setenv("FIELD_SYNC_STORAGE_BACKEND", "memory")
        reset_config()

        assert get_config().storage_backend == "memory"
