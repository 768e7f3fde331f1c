"""Adapters that hand a build configuration to the external build engine.

:class:`BuildBackend` is the seam the orchestrator talks to. The shipped
implementation, :class:`CommandBackend`, launches the engine as a
subprocess:

1. The :class:`~shipgate.models.BuildConfiguration` is written as JSON to a
   temporary *request* file.
2. The configured command is run with ``--build-request <file>`` and
   ``--build-report <file>`` appended.
3. The engine's JSON report, if it wrote one, is read back::

       {"result": "succeeded", "total_errors": 0, "total_size": 48211968}

Any artifact left by an earlier build is removed before launch, so a success
is only reported for an artifact this run produced. Anything short of a
clean success (a failed report, a non-zero exit, a crash, a timeout, a
missing executable, or a success without an artifact) becomes a ``failed``
:class:`~shipgate.models.BuildResult`. Nothing is retried and the engine's
own diagnostics are passed through verbatim.
"""

from __future__ import annotations

import json
import logging
import platform
import shutil
import subprocess
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional, Sequence

from shipgate.models import (
    BuildConfiguration,
    BuildResult,
    BuildStatus,
    ProjectSettings,
    TargetPlatform,
)

logger = logging.getLogger(__name__)

_STDERR_TAIL_LINES = 20


def host_supports(target: TargetPlatform) -> bool:
    """Whether the current host can produce *target* at all."""
    if target is TargetPlatform.IOS:
        return platform.system() == "Darwin"
    return True


def host_requirement(target: TargetPlatform) -> str:
    """Human-readable host requirement for *target*."""
    return "macOS" if target is TargetPlatform.IOS else "a supported host"


def measure_artifact(path: Path) -> int:
    """Return the size of a file, or the total size of a directory tree."""
    if path.is_file():
        return path.stat().st_size
    if path.is_dir():
        return sum(p.stat().st_size for p in path.rglob("*") if p.is_file())
    return 0


class BuildBackend(ABC):
    """Base class for build engine adapters.

    Subclasses implement :meth:`build`. :meth:`supports` defaults to the
    host capability check in :func:`host_supports`.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier used in diagnostics."""
        ...

    def supports(self, target: TargetPlatform) -> bool:
        return host_supports(target)

    @abstractmethod
    def build(self, config: BuildConfiguration) -> BuildResult:
        """Run one build and return its normalized result. Must not raise for
        engine failures; those are reported as ``failed`` results."""
        ...


class CommandBackend(BuildBackend):
    """Runs the build engine as a subprocess.

    Args:
        command: Engine command line. ``{project_root}`` in any argument is
            replaced with the project root.
        project_root: Working directory for the engine process.
        timeout: Seconds before the engine is killed and the build failed;
            ``None`` waits indefinitely.
    """

    def __init__(
        self,
        command: Sequence[str],
        project_root: Path,
        timeout: Optional[int] = None,
    ) -> None:
        if not command:
            raise ValueError("backend command must not be empty")
        self._command = [arg.replace("{project_root}", str(project_root)) for arg in command]
        self._project_root = project_root
        self._timeout = timeout

    @property
    def name(self) -> str:
        return Path(self._command[0]).name

    @property
    def command(self) -> list[str]:
        return list(self._command)

    def build(self, config: BuildConfiguration) -> BuildResult:
        _discard_previous_artifact(config.output_path)
        work_dir = Path(tempfile.mkdtemp(prefix=f"shipgate-{config.target_platform.value}-"))
        try:
            request_file = work_dir / "request.json"
            report_file = work_dir / "report.json"
            request_file.write_text(config.model_dump_json(indent=2), encoding="utf-8")

            args = self._command + [
                "--build-request", str(request_file),
                "--build-report", str(report_file),
            ]
            logger.debug("Launching build engine: %s", " ".join(args))

            try:
                proc = subprocess.run(
                    args,
                    capture_output=True,
                    text=True,
                    timeout=self._timeout,
                    cwd=self._project_root,
                )
            except subprocess.TimeoutExpired:
                return BuildResult.failed(
                    messages=(f"Build engine timed out after {self._timeout} seconds.",)
                )
            except FileNotFoundError:
                return BuildResult.failed(
                    messages=(f"Build engine executable not found: {self._command[0]}",)
                )
            except OSError as exc:
                return BuildResult.failed(messages=(f"Could not launch build engine: {exc}",))

            report = _read_report(report_file)
            return self._normalize(config, proc, report)
        finally:
            shutil.rmtree(work_dir, ignore_errors=True)

    def _normalize(
        self,
        config: BuildConfiguration,
        proc: subprocess.CompletedProcess,
        report: Optional[dict[str, Any]],
    ) -> BuildResult:
        messages = tuple((proc.stderr or "").splitlines()[-_STDERR_TAIL_LINES:])
        reported_errors = _as_int((report or {}).get("total_errors"))
        reported_result = str((report or {}).get("result", "")).lower()

        if proc.returncode != 0:
            logger.debug("Build engine exited with status %s", proc.returncode)
            return BuildResult.failed(reported_errors, messages)
        if report is not None and reported_result != BuildStatus.SUCCEEDED.value:
            return BuildResult.failed(reported_errors, messages)

        artifact = config.output_path
        if not artifact.exists() or (artifact.is_dir() and not any(artifact.iterdir())):
            return BuildResult.failed(
                messages=messages + (f"Expected artifact not found at: {artifact}",)
            )

        size = _as_int((report or {}).get("total_size")) or measure_artifact(artifact)
        return BuildResult(
            status=BuildStatus.SUCCEEDED,
            artifact_path=artifact,
            artifact_size_bytes=size,
            messages=messages,
        )


def _discard_previous_artifact(path: Path) -> None:
    """Remove the artifact of an earlier build so only a fresh one can count.

    The export directory itself is recreated empty; an export that is still
    empty after the engine exits counts as a missing artifact.
    """
    if path.is_dir():
        shutil.rmtree(path)
        path.mkdir()
    elif path.exists():
        path.unlink()


def _read_report(path: Path) -> Optional[dict[str, Any]]:
    """Return the engine's JSON report, or ``None`` if absent or unreadable."""
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable build report %s: %s", path, exc)
        return None
    return data if isinstance(data, dict) else None


def _as_int(value: Any) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


def create_backend(settings: ProjectSettings) -> BuildBackend:
    """Build the backend described by *settings*."""
    return CommandBackend(
        settings.backend.command,
        project_root=settings.project_root,
        timeout=settings.backend.timeout_seconds,
    )
