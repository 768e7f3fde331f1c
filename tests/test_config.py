"""Tests for shipgate.config -- XDG paths, atomic writes, project settings, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from shipgate.config import (
    _atomic_write,
    find_project_file,
    get_data_dir,
    load_project_settings,
    load_structured_file,
    resolve_settings,
    save_project_settings,
)
from shipgate.exceptions import ConfigError, InvalidUsageError
from shipgate.models import DEFAULT_ASSETS, ProjectSettings


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestDataDir:
    def test_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("shipgate.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg"))
        result = get_data_dir()
        assert result == tmp_path / "xdg" / "shipgate"
        assert result.is_dir()

    def test_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("shipgate.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        assert get_data_dir() == tmp_path / ".local" / "share" / "shipgate"

    def test_non_xdg_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("shipgate.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        assert get_data_dir() == tmp_path / ".shipgate"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_file_with_content(self, tmp_path: Path) -> None:
        target = tmp_path / "shipgate.json"
        _atomic_write(target, '{"output_root": "out"}')
        assert target.read_text() == '{"output_root": "out"}'

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "shipgate.json"
        _atomic_write(target, "{}")
        assert target.exists()

    def test_no_temp_files_left_on_error(self, tmp_path: Path) -> None:
        target = tmp_path / "shipgate.json"
        with patch("shipgate.config.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                _atomic_write(target, "{}")
        assert list(tmp_path.iterdir()) == []


# ---------------------------------------------------------------------------
# Structured files
# ---------------------------------------------------------------------------


class TestLoadStructuredFile:
    def test_json(self, tmp_path: Path) -> None:
        path = tmp_path / "a.json"
        path.write_text('{"a": 1}')
        assert load_structured_file(path) == {"a": 1}

    def test_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "a.yaml"
        path.write_text("a: 1\nb:\n  - x\n")
        assert load_structured_file(path) == {"a": 1, "b": ["x"]}

    def test_yaml_rejected_for_json_suffix(self, tmp_path: Path) -> None:
        path = tmp_path / "a.json"
        path.write_text("a: 1\n")
        with pytest.raises(ConfigError, match="Invalid config file"):
            load_structured_file(path)

    def test_empty_document(self, tmp_path: Path) -> None:
        path = tmp_path / "a.yml"
        path.write_text("")
        with pytest.raises(ConfigError, match="empty document"):
            load_structured_file(path)

    def test_unreadable(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Cannot read"):
            load_structured_file(tmp_path / "missing.json")


# ---------------------------------------------------------------------------
# Project settings
# ---------------------------------------------------------------------------


class TestProjectSettings:
    def test_defaults_when_missing(self, project_dir: Path) -> None:
        settings = load_project_settings(project_dir)
        assert settings.project_root == project_dir.resolve()
        assert settings.output_root == "builds"
        assert settings.assets == list(DEFAULT_ASSETS)
        assert settings.android.min_sdk_version == 24
        assert settings.ios.target_os_version == "13.0"

    def test_json_file(self, project_dir: Path) -> None:
        _write_json(project_dir / "shipgate.json", {
            "output_root": "dist",
            "assets": ["Assets/Scenes/Main.unity"],
            "android": {"target_sdk_version": 35},
        })
        settings = load_project_settings(project_dir)
        assert settings.output_root == "dist"
        assert settings.assets == ["Assets/Scenes/Main.unity"]
        assert settings.android.target_sdk_version == 35
        assert settings.android.min_sdk_version == 24

    def test_yaml_file(self, project_dir: Path) -> None:
        (project_dir / "shipgate.yaml").write_text(
            "backend:\n  command: [unity-editor, -quit]\n  timeout_seconds: 600\n"
        )
        settings = load_project_settings(project_dir)
        assert settings.backend.command == ["unity-editor", "-quit"]
        assert settings.backend.timeout_seconds == 600

    def test_json_preferred_over_yaml(self, project_dir: Path) -> None:
        _write_json(project_dir / "shipgate.json", {"output_root": "from-json"})
        (project_dir / "shipgate.yaml").write_text("output_root: from-yaml\n")
        assert find_project_file(project_dir) == project_dir / "shipgate.json"
        assert load_project_settings(project_dir).output_root == "from-json"

    def test_project_root_in_file_ignored(self, project_dir: Path, tmp_path: Path) -> None:
        _write_json(project_dir / "shipgate.json", {"project_root": str(tmp_path / "elsewhere")})
        assert load_project_settings(project_dir).project_root == project_dir.resolve()

    def test_unknown_key_raises(self, project_dir: Path) -> None:
        _write_json(project_dir / "shipgate.json", {"ouput_root": "typo"})
        with pytest.raises(ConfigError, match="Invalid project settings"):
            load_project_settings(project_dir)

    def test_save_round_trip(self, project_dir: Path) -> None:
        settings = ProjectSettings(project_root=project_dir, output_root="out")
        path = save_project_settings(settings)

        assert path == project_dir / "shipgate.json"
        data = json.loads(path.read_text())
        assert "project_root" not in data
        assert load_project_settings(project_dir).output_root == "out"

    def test_derived_paths(self, project_dir: Path) -> None:
        settings = ProjectSettings(project_root=project_dir)
        assert settings.output_dir == project_dir / "builds"
        assert settings.app_config_path == project_dir / "Assets" / "Resources" / "AppConfig.json"


# ---------------------------------------------------------------------------
# Precedence resolution
# ---------------------------------------------------------------------------


class TestResolveSettings:
    def test_defaults_to_cwd(self, project_dir: Path) -> None:
        assert resolve_settings().project_root == project_dir.resolve()

    def test_missing_project_dir(self, project_dir: Path) -> None:
        with pytest.raises(ConfigError, match="Project directory not found"):
            resolve_settings(str(project_dir / "nope"))

    def test_env_project(self, project_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        other = tmp_path / "other"
        other.mkdir()
        monkeypatch.setenv("SHIPGATE_PROJECT", str(other))
        assert resolve_settings().project_root == other.resolve()

    def test_cli_project_overrides_env(
        self, project_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("SHIPGATE_PROJECT", str(tmp_path))
        assert resolve_settings(str(project_dir)).project_root == project_dir.resolve()

    def test_project_file_overrides_default(self, project_dir: Path) -> None:
        _write_json(project_dir / "shipgate.json", {"output_root": "from-file"})
        assert resolve_settings().output_root == "from-file"

    def test_env_overrides_project_file(self, project_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_json(project_dir / "shipgate.json", {"output_root": "from-file"})
        monkeypatch.setenv("SHIPGATE_OUTPUT_ROOT", "from-env")
        assert resolve_settings().output_root == "from-env"

    def test_cli_overrides_env(self, project_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SHIPGATE_OUTPUT_ROOT", "from-env")
        assert resolve_settings(cli_output_root="from-cli").output_root == "from-cli"

    def test_env_app_config(self, project_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SHIPGATE_APP_CONFIG", "Config/app.yaml")
        settings = resolve_settings()
        assert settings.app_config_path == project_dir.resolve() / "Config" / "app.yaml"

    def test_empty_cli_output_root_is_usage_error(self, project_dir: Path) -> None:
        with pytest.raises(InvalidUsageError) as exc_info:
            resolve_settings(cli_output_root="  ")
        assert exc_info.value.exit_code == 2
