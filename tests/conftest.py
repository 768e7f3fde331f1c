"""Shared test fixtures for shipgate.

Provides reusable fixtures for isolated project directories, application
config resources, a scripted fake build engine and output state resets.
These fixtures are discovered by pytest automatically.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import pytest

from shipgate.backend import BuildBackend
from shipgate.models import (
    BuildConfiguration,
    BuildResult,
    BuildStatus,
    ProjectSettings,
    TargetPlatform,
)
from shipgate.output import reset_output


READY_URL = "https://shadowing-tutor.onrender.com"


# ---------------------------------------------------------------------------
# Auto-reset global output and logging state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and the shipgate log handlers.

    Both cache references to sys.stderr at creation time. When Typer's
    CliRunner redirects the streams and the test finishes, those references
    become stale, so every test starts from a clean slate.
    """
    yield
    reset_output()
    logger = logging.getLogger("shipgate")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Fake build engine
# ---------------------------------------------------------------------------


class FakeBackend(BuildBackend):
    """In-process backend that records calls and returns scripted results.

    By default every build succeeds and writes a small artifact at the
    configured output path. ``fail`` maps platforms to an error count to
    report instead; ``unsupported`` lists platforms the "host" can't build.
    """

    def __init__(
        self,
        fail: Optional[dict[TargetPlatform, int]] = None,
        unsupported: tuple[TargetPlatform, ...] = (),
        artifact_bytes: int = 2048,
    ) -> None:
        self.calls: list[BuildConfiguration] = []
        self._fail = fail or {}
        self._unsupported = unsupported
        self._artifact_bytes = artifact_bytes

    @property
    def name(self) -> str:
        return "fake"

    def supports(self, target: TargetPlatform) -> bool:
        return target not in self._unsupported

    def build(self, config: BuildConfiguration) -> BuildResult:
        self.calls.append(config)
        if config.target_platform in self._fail:
            return BuildResult.failed(
                self._fail[config.target_platform], ("engine: compilation failed",)
            )
        if config.platform_options.export_project:
            config.output_path.mkdir(parents=True, exist_ok=True)
            (config.output_path / "project.pbxproj").write_bytes(b"\x00" * self._artifact_bytes)
        else:
            config.output_path.write_bytes(b"\x00" * self._artifact_bytes)
        return BuildResult(
            status=BuildStatus.SUCCEEDED,
            artifact_path=config.output_path,
            artifact_size_bytes=self._artifact_bytes,
        )

    @property
    def platforms_built(self) -> list[TargetPlatform]:
        return [c.target_platform for c in self.calls]


@pytest.fixture
def fake_backend() -> FakeBackend:
    """A fake backend on a host that can build every platform."""
    return FakeBackend()


# ---------------------------------------------------------------------------
# Project fixtures
# ---------------------------------------------------------------------------


def write_app_config(project_root: Path, production_url: str = READY_URL, **extra: Any) -> Path:
    """Write an application config resource under the default location."""
    path = project_root / "Assets" / "Resources" / "AppConfig.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"production_url": production_url, **extra}), encoding="utf-8")
    return path


@pytest.fixture
def project_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """An isolated project directory that is also the working directory.

    Clears all SHIPGATE_* environment variables and points XDG_DATA_HOME
    into tmp_path so crash logs never touch the real home directory.
    """
    root = tmp_path / "project"
    root.mkdir()

    for var in ["SHIPGATE_PROJECT", "SHIPGATE_OUTPUT_ROOT", "SHIPGATE_APP_CONFIG"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.chdir(root)
    return root


@pytest.fixture
def settings(project_dir: Path) -> ProjectSettings:
    """Default project settings rooted at the isolated project directory."""
    return ProjectSettings(project_root=project_dir)


@pytest.fixture
def ready_project(project_dir: Path) -> Path:
    """A project whose application config is ready for a release build."""
    write_app_config(project_dir)
    return project_dir


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def app_config_writer():
    """Return :func:`write_app_config` for tests that vary the config."""
    return write_app_config


@pytest.fixture
def backend_factory():
    """Return the :class:`FakeBackend` class for tests that script failures."""
    return FakeBackend
