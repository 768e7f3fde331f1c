"""Project settings with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for shipgate:

* **Directory layout** -- crash logs live in the XDG data directory on
  Linux/BSD and under ``~/.shipgate/`` on macOS and Windows. See
  :func:`get_data_dir`.
* **Project settings** -- a ``shipgate.json`` (or ``shipgate.yaml``) file at
  the project root, deserialised into :class:`~shipgate.models.ProjectSettings`.
* **Precedence resolution** -- :func:`resolve_settings` merges CLI flags,
  environment variables, the project file and defaults.
* **Structured file loading** -- :func:`load_structured_file` reads JSON or
  YAML documents for both the project file and the application config
  resource inspected by the release gate.

The application config resource itself is owned by the app; shipgate only
ever reads it.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

import yaml

from shipgate.exceptions import ConfigError, InvalidUsageError
from shipgate.models import ProjectSettings

_APP_NAME = "shipgate"
PROJECT_FILENAMES = ("shipgate.json", "shipgate.yaml", "shipgate.yml")

ENV_PROJECT = "SHIPGATE_PROJECT"
ENV_OUTPUT_ROOT = "SHIPGATE_OUTPUT_ROOT"
ENV_APP_CONFIG = "SHIPGATE_APP_CONFIG"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/shipgate/`` (default ``~/.local/share/shipgate/``).
    On macOS/Windows: ``~/.shipgate/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Structured files ---


def load_structured_file(path: Path) -> dict[str, Any]:
    """Parse a JSON or YAML document into a dict.

    ``.json`` files are parsed strictly as JSON; anything else is parsed as
    YAML (which also accepts JSON).

    Raises:
        ConfigError: If the file cannot be read, does not parse, or is not
            a mapping.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc

    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Invalid config file {path}: {exc}") from exc

    if not isinstance(data, dict):
        kind = type(data).__name__ if data is not None else "empty document"
        raise ConfigError(f"Config file {path} must contain an object (got {kind})")
    return data


# --- Project settings ---


def find_project_file(root: Path) -> Optional[Path]:
    """Return the first project settings file present in *root*, if any."""
    for name in PROJECT_FILENAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def load_project_settings(root: Path) -> ProjectSettings:
    """Load the project settings for the project rooted at *root*.

    A missing file is not an error: every setting has a default, so a bare
    project directory builds with the stock scene list and output layout.

    Raises:
        ConfigError: If the file exists but is malformed or fails validation.
    """
    root = root.resolve()
    path = find_project_file(root)
    if path is None:
        return ProjectSettings(project_root=root)

    data = load_structured_file(path)
    data.pop("project_root", None)
    try:
        return ProjectSettings.model_validate({**data, "project_root": root})
    except ValueError as exc:
        raise ConfigError(f"Invalid project settings at {path}: {exc}") from exc


def save_project_settings(settings: ProjectSettings) -> Path:
    """Persist *settings* atomically as ``shipgate.json`` in its project root."""
    path = settings.project_root / PROJECT_FILENAMES[0]
    data = settings.model_dump(mode="json")
    _atomic_write(path, json.dumps(data, indent=2) + "\n")
    return path


# --- Precedence resolution ---


def resolve_settings(
    cli_project: Optional[str] = None,
    cli_output_root: Optional[str] = None,
) -> ProjectSettings:
    """Resolve project settings with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_project``, ``cli_output_root``)
        2. Environment variables (``SHIPGATE_PROJECT``,
           ``SHIPGATE_OUTPUT_ROOT``, ``SHIPGATE_APP_CONFIG``)
        3. Project file (``<project>/shipgate.json``)
        4. Defaults

    The project root itself defaults to the current working directory.

    Raises:
        ConfigError: The project directory does not exist or its settings
            file is malformed.
        InvalidUsageError: An empty output root was passed on the command line.
    """
    root_name = cli_project or os.environ.get(ENV_PROJECT) or "."
    root = Path(root_name).expanduser()
    if not root.is_dir():
        raise ConfigError(f"Project directory not found: {root}")

    settings = load_project_settings(root)

    overrides: dict[str, Any] = {}
    env_output_root = os.environ.get(ENV_OUTPUT_ROOT)
    if cli_output_root is not None:
        if not cli_output_root.strip():
            raise InvalidUsageError("--output-root must not be empty")
        overrides["output_root"] = cli_output_root
    elif env_output_root:
        overrides["output_root"] = env_output_root

    env_app_config = os.environ.get(ENV_APP_CONFIG)
    if env_app_config:
        overrides["app_config"] = env_app_config

    if overrides:
        settings = settings.model_copy(update=overrides)
    return settings
