"""Tests for apidocs.config -- XDG paths, atomic writes, profiles, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from apidocs.config import (
    _atomic_write,
    get_config_dir,
    get_data_dir,
    get_profiles_dir,
    list_profiles,
    load_global_config,
    load_profile,
    load_project_config,
    profile_exists,
    resolve_config,
    save_global_config,
    save_profile,
)
from apidocs.exceptions import ConfigError
from apidocs.models import GlobalConfig, OutputConfig, Profile


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def _make_profile(name: str = "test", api_id: str = "abc123", stage: str = "prod") -> Profile:
    return Profile(name=name, api_id=api_id, stage=stage)


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPaths:
    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("apidocs.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "apidocs"
        assert result.is_dir()

    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("apidocs.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "custom"))
        assert get_config_dir() == tmp_path / "custom" / "apidocs"

    def test_data_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("apidocs.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
        assert get_data_dir() == tmp_path / "data" / "apidocs"

    def test_fallback_on_other_platforms(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("apidocs.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert get_config_dir() == tmp_path / ".apidocs"
        assert get_data_dir() == tmp_path / ".apidocs" / "logs"

    def test_profiles_dir_is_inside_config_dir(self, isolated_config: Path) -> None:
        assert get_profiles_dir() == get_config_dir() / "profiles"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_file_with_content(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        _atomic_write(target, "hello world")
        assert target.read_text(encoding="utf-8") == "hello world"

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "test.txt"
        _atomic_write(target, "deep write")
        assert target.read_text(encoding="utf-8") == "deep write"

    def test_no_temp_files_left_on_success(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        _atomic_write(target, "content")
        assert list(tmp_path.iterdir()) == [target]

    def test_no_temp_files_left_on_error(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        with patch("apidocs.config.os.fsync", side_effect=OSError("disk error")):
            with pytest.raises(OSError, match="disk error"):
                _atomic_write(target, "will fail")
        assert list(tmp_path.iterdir()) == []


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


class TestGlobalConfig:
    def test_load_returns_defaults_when_missing(self, isolated_config: Path) -> None:
        cfg = load_global_config()
        assert cfg == GlobalConfig()
        assert cfg.default_profile is None
        assert cfg.output.format == "auto"

    def test_save_and_load_roundtrip(self, isolated_config: Path) -> None:
        original = GlobalConfig(
            default_profile="todo-prod",
            auto_select_single_profile=False,
            output=OutputConfig(format="json"),
        )
        save_global_config(original)
        assert load_global_config() == original

    def test_load_invalid_json_raises_config_error(self, isolated_config: Path) -> None:
        (get_config_dir() / "config.json").write_text("{invalid json!!!", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()

    def test_load_invalid_schema_raises_config_error(self, isolated_config: Path) -> None:
        _write_json(get_config_dir() / "config.json", {"output": "not-a-dict"})
        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class TestProfiles:
    def test_list_empty(self, isolated_config: Path) -> None:
        assert list_profiles() == []

    def test_save_load_roundtrip(self, isolated_config: Path) -> None:
        profile = Profile(
            name="todo-prod",
            api_id="dekq8mivw9",
            stage="prod",
            region="us-east-1",
            manifest="docs.yaml",
        )
        save_profile(profile)
        assert list_profiles() == ["todo-prod"]
        assert load_profile("todo-prod") == profile

    def test_load_nonexistent_raises(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_profile("missing")

    def test_load_invalid_profile_raises(self, isolated_config: Path) -> None:
        _write_json(get_profiles_dir() / "bad.json", {"name": "bad"})
        with pytest.raises(ConfigError, match="Invalid profile 'bad'"):
            load_profile("bad")


class TestProjectConfig:
    def test_none_when_missing(self, isolated_config: Path) -> None:
        assert load_project_config() is None

    def test_loads_object(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "apidocs.json", {"default_profile": "x"})
        assert load_project_config() == {"default_profile": "x"}

    def test_non_object_rejected(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "apidocs.json", ["x"])
        with pytest.raises(ConfigError, match="expected an object"):
            load_project_config()


# ---------------------------------------------------------------------------
# Precedence resolution
# ---------------------------------------------------------------------------


class TestResolveConfig:
    """CLI > env > project > global > defaults."""

    def test_defaults_no_profile(self, isolated_config: Path) -> None:
        cfg, profile = resolve_config()
        assert isinstance(cfg, GlobalConfig)
        assert profile is None

    def test_global_default_profile(self, isolated_config: Path) -> None:
        save_profile(_make_profile("global-api"))
        save_profile(_make_profile("other"))
        save_global_config(GlobalConfig(default_profile="global-api"))

        _, profile = resolve_config()
        assert profile.name == "global-api"

    def test_project_overrides_global(self, isolated_config: Path) -> None:
        save_profile(_make_profile("global-api"))
        save_profile(_make_profile("project-api"))
        save_global_config(GlobalConfig(default_profile="global-api"))
        _write_json(isolated_config / "apidocs.json", {"default_profile": "project-api"})

        _, profile = resolve_config()
        assert profile.name == "project-api"

    def test_env_overrides_project(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        save_profile(_make_profile("project-api"))
        save_profile(_make_profile("env-api"))
        _write_json(isolated_config / "apidocs.json", {"default_profile": "project-api"})
        monkeypatch.setenv("APIDOCS_PROFILE", "env-api")

        _, profile = resolve_config()
        assert profile.name == "env-api"

    def test_cli_overrides_env(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        save_profile(_make_profile("env-api"))
        save_profile(_make_profile("cli-api"))
        monkeypatch.setenv("APIDOCS_PROFILE", "env-api")

        _, profile = resolve_config(cli_profile="cli-api")
        assert profile.name == "cli-api"

    def test_env_overrides_profile_fields(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        save_profile(_make_profile("api", api_id="abc123", stage="prod"))
        monkeypatch.setenv("APIDOCS_STAGE", "dev")
        monkeypatch.setenv("APIDOCS_REGION", "us-west-2")

        _, profile = resolve_config()
        assert profile.api_id == "abc123"
        assert profile.stage == "dev"
        assert profile.region == "us-west-2"
        assert load_profile("api").stage == "prod"

    def test_cli_format_overrides_global(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig(output=OutputConfig(format="plain")))
        cfg, _ = resolve_config(cli_format="json")
        assert cfg.output.format == "json"

    def test_auto_select_single_profile(self, isolated_config: Path) -> None:
        save_profile(_make_profile("only-one"))
        _, profile = resolve_config()
        assert profile.name == "only-one"

    def test_auto_select_disabled(self, isolated_config: Path) -> None:
        save_profile(_make_profile("only-one"))
        save_global_config(GlobalConfig(auto_select_single_profile=False))
        _, profile = resolve_config()
        assert profile is None

    def test_auto_select_skipped_when_multiple(self, isolated_config: Path) -> None:
        save_profile(_make_profile("alpha"))
        save_profile(_make_profile("beta"))
        _, profile = resolve_config()
        assert profile is None

    def test_nonexistent_profile_raises(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            resolve_config(cli_profile="does-not-exist")
