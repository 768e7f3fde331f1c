"""Canonical Pydantic models shared across all shipgate modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Settings models** -- the project-local ``shipgate.json`` file:
    :class:`BackendSettings`, :class:`AndroidSettings`, :class:`IosSettings`
    and :class:`ProjectSettings`.

**Pipeline records** -- built fresh for every pipeline run and discarded
afterwards:
    :class:`BuildIntent`, :class:`PlatformOptions`,
    :class:`BuildConfiguration`, :class:`BuildResult` and
    :class:`ValidationDecision`.

**Application configuration** -- the read-only view of the app's own
operational config resource that the release gate inspects:
    :class:`ApplicationConfig`.

Pipeline records are frozen; once the resolver hands a
:class:`BuildConfiguration` to the backend nothing can change it.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# --- Enumerations ---


class TargetPlatform(str, enum.Enum):
    """Platforms the build engine can package for."""

    ANDROID_APK = "android-apk"
    ANDROID_AAB = "android-aab"
    IOS = "ios"

    @property
    def is_android(self) -> bool:
        return self in (TargetPlatform.ANDROID_APK, TargetPlatform.ANDROID_AAB)


class BuildMode(str, enum.Enum):
    """Release builds are gated; development builds are not."""

    DEVELOPMENT = "development"
    RELEASE = "release"


class SymbolPolicy(str, enum.Enum):
    """Native debug symbol generation for Android packages."""

    MINIMAL = "minimal"
    PUBLIC = "public"


class BuildStatus(str, enum.Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ValidationOutcome(str, enum.Enum):
    ALLOW = "allow"
    DENY = "deny"


class DenialCode(str, enum.Enum):
    """Why the release gate refused a build."""

    CONFIGURATION_MISSING = "configuration_missing"
    CONFIGURATION_NOT_READY = "configuration_not_ready"


class Environment(str, enum.Enum):
    """Backend environments the packaged app can talk to."""

    LOCAL = "local"
    LAN = "lan"
    STAGING = "staging"
    PRODUCTION = "production"


# --- Project settings ---


DEFAULT_ASSETS = (
    "Assets/Scenes/TutorRoom.unity",
    "Assets/Scenes/Result.unity",
)


class BackendSettings(BaseModel):
    """How to launch the external build engine.

    ``command`` is the engine invocation without the request/report
    arguments that :class:`~shipgate.backend.CommandBackend` appends.
    The ``{project_root}`` placeholder is substituted before launch.
    """

    command: list[str] = Field(
        default_factory=lambda: [
            "unity",
            "-quit",
            "-batchmode",
            "-projectPath",
            "{project_root}",
            "-executeMethod",
            "Shipgate.BuildEntry.Run",
        ],
        description="Engine command line; {project_root} is substituted",
    )
    timeout_seconds: Optional[int] = Field(
        default=None, description="Abort and fail the build after this many seconds"
    )


class AndroidSettings(BaseModel):
    min_sdk_version: int = 24
    target_sdk_version: int = 34
    architectures: list[str] = Field(default_factory=lambda: ["arm64"])
    scripting_backend: str = "il2cpp"


class IosSettings(BaseModel):
    target_os_version: str = "13.0"
    sdk: str = "device"
    scripting_backend: str = "il2cpp"


class ProjectSettings(BaseModel):
    """Project-local build settings, read from ``shipgate.json``.

    ``project_root`` is not stored in the file; the loader fills it in with
    the directory the file was found in (or the directory the user pointed
    ``--project`` at).

    Example::

        {
          "product_name": "ShadowingTutor",
          "output_root": "builds",
          "assets": ["Assets/Scenes/TutorRoom.unity", "Assets/Scenes/Result.unity"],
          "app_config": "Assets/Resources/AppConfig.json"
        }
    """

    model_config = ConfigDict(extra="forbid")

    project_root: Path = Field(default=Path("."), exclude=True)
    product_name: str = "ShadowingTutor"
    output_root: str = Field(
        default="builds", description="Artifact directory, relative to the project root"
    )
    assets: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ASSETS),
        description="Ordered scene manifest shared by every platform",
    )
    app_config: str = Field(
        default="Assets/Resources/AppConfig.json",
        description="Application config resource checked by the release gate",
    )
    backend: BackendSettings = Field(default_factory=BackendSettings)
    android: AndroidSettings = Field(default_factory=AndroidSettings)
    ios: IosSettings = Field(default_factory=IosSettings)

    @property
    def output_dir(self) -> Path:
        return self.project_root / self.output_root

    @property
    def app_config_path(self) -> Path:
        return self.project_root / self.app_config


# --- Pipeline records ---


class BuildIntent(BaseModel):
    """What the operator asked for, before any option is composed.

    Android and iOS express "debug or not" on separate axes:
    ``packaging_mode`` picks the Android artifact policy, while
    ``debugging_enabled`` toggles the iOS export's debugging support. The
    two only meet in :attr:`effective_mode`.
    """

    model_config = ConfigDict(frozen=True)

    platform: TargetPlatform
    packaging_mode: BuildMode = BuildMode.DEVELOPMENT
    debugging_enabled: bool = False

    @classmethod
    def android_apk(cls) -> BuildIntent:
        return cls(platform=TargetPlatform.ANDROID_APK, packaging_mode=BuildMode.DEVELOPMENT)

    @classmethod
    def android_aab(cls) -> BuildIntent:
        return cls(platform=TargetPlatform.ANDROID_AAB, packaging_mode=BuildMode.RELEASE)

    @classmethod
    def ios(cls, development: bool = False) -> BuildIntent:
        return cls(platform=TargetPlatform.IOS, debugging_enabled=development)

    @property
    def effective_mode(self) -> BuildMode:
        if self.platform is TargetPlatform.IOS:
            return BuildMode.DEVELOPMENT if self.debugging_enabled else BuildMode.RELEASE
        return self.packaging_mode


class PlatformOptions(BaseModel):
    """Platform toggles handed to the engine. ``None`` means "not applicable"."""

    model_config = ConfigDict(frozen=True)

    build_app_bundle: bool = False
    export_project: bool = False
    create_symbols: Optional[SymbolPolicy] = None
    development: bool = False
    allow_debugging: bool = False
    connect_profiler: bool = False
    scripting_backend: str = "il2cpp"
    target_architectures: tuple[str, ...] = ()
    min_sdk_version: Optional[int] = None
    target_sdk_version: Optional[int] = None
    target_os_version: Optional[str] = None
    sdk: Optional[str] = None


class BuildConfiguration(BaseModel):
    """One concrete build request, produced by :func:`~shipgate.resolver.resolve_build`."""

    model_config = ConfigDict(frozen=True)

    target_platform: TargetPlatform
    mode: BuildMode
    asset_manifest: tuple[str, ...]
    output_path: Path
    platform_options: PlatformOptions

    @model_validator(mode="after")
    def _check_debug_toggles(self) -> BuildConfiguration:
        opts = self.platform_options
        if self.mode is BuildMode.RELEASE:
            if opts.development or opts.allow_debugging or opts.connect_profiler:
                raise ValueError("release builds must not enable debugging toggles")
        elif not (opts.development and opts.allow_debugging):
            raise ValueError("development builds must enable debugging toggles")
        return self


class BuildResult(BaseModel):
    """Normalized outcome of one engine invocation."""

    model_config = ConfigDict(frozen=True)

    status: BuildStatus
    artifact_path: Optional[Path] = None
    artifact_size_bytes: int = Field(default=0, ge=0)
    error_count: int = Field(default=0, ge=0)
    messages: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _check_status(self) -> BuildResult:
        if self.status is BuildStatus.SUCCEEDED:
            if self.error_count != 0:
                raise ValueError("a succeeded build cannot report errors")
            if self.artifact_path is None:
                raise ValueError("a succeeded build must name its artifact")
        elif self.error_count < 1:
            raise ValueError("a failed build must report at least one error")
        return self

    @property
    def succeeded(self) -> bool:
        return self.status is BuildStatus.SUCCEEDED

    @property
    def size_mb(self) -> float:
        return self.artifact_size_bytes / (1024 * 1024)

    @classmethod
    def failed(cls, error_count: int = 1, messages: tuple[str, ...] = ()) -> BuildResult:
        return cls(
            status=BuildStatus.FAILED,
            error_count=max(1, error_count),
            messages=messages,
        )


class ValidationDecision(BaseModel):
    """Verdict of the release gate for one build."""

    model_config = ConfigDict(frozen=True)

    mode: BuildMode
    outcome: ValidationOutcome
    reason: str = ""
    code: Optional[DenialCode] = None
    remediation: Optional[str] = None

    @model_validator(mode="after")
    def _check_denial(self) -> ValidationDecision:
        if self.outcome is ValidationOutcome.DENY:
            if self.mode is not BuildMode.RELEASE:
                raise ValueError("only release builds can be denied")
            if not self.reason or self.code is None:
                raise ValueError("a denial needs a reason and a code")
        return self

    @property
    def allowed(self) -> bool:
        return self.outcome is ValidationOutcome.ALLOW

    def raise_for_denial(self) -> None:
        """Raise the matching :class:`~shipgate.exceptions.ValidationDeniedError`."""
        if self.allowed:
            return
        from shipgate.exceptions import (
            ConfigurationMissingError,
            ConfigurationNotReadyError,
        )

        if self.code is DenialCode.CONFIGURATION_MISSING:
            raise ConfigurationMissingError(self)
        raise ConfigurationNotReadyError(self)


# --- Application configuration ---


PLACEHOLDER_PRODUCTION_URL = "https://YOUR-BACKEND.onrender.com"

_PLACEHOLDER_MARKERS = ("YOUR-BACKEND", "example.com")
_LOCALHOST_MARKERS = ("localhost", "127.0.0.1")


def is_localhost_url(url: str) -> bool:
    """Return True for URLs a physical device cannot reach."""
    lowered = url.lower()
    return any(marker in lowered for marker in _LOCALHOST_MARKERS)


class ApplicationConfig(BaseModel):
    """Read-only view of the app's operational configuration resource.

    Only two facts matter to the build: :attr:`is_ready_for_release_build`,
    which is authoritative, and :meth:`diagnostic_endpoint`, which is shown
    to operators when the build is refused and never used to decide
    anything. The production URL is kept out of ``repr`` and the model is
    frozen, so the accessor is the only sanctioned way to read it.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    local_url: str = "http://localhost:3000"
    lan_url_template: str = "http://{IP}:3000"
    staging_url: str = "https://staging-api.example.com"
    production_url: str = Field(default=PLACEHOLDER_PRODUCTION_URL, repr=False)
    default_build_environment: Environment = Environment.PRODUCTION
    default_lan_ip: str = "192.168.1.100"
    speed_profile: int = Field(default=2, ge=1, le=3)
    mic_sample_rate: int = 16000
    max_recording_duration: float = 10.0
    debug_shuffle_seed: int = 0

    @property
    def is_ready_for_release_build(self) -> bool:
        url = self.production_url.strip()
        if not url:
            return False
        if any(marker in url for marker in _PLACEHOLDER_MARKERS):
            return False
        return not is_localhost_url(url)

    def diagnostic_endpoint(self) -> str:
        """Return the configured production URL for display only."""
        return self.production_url or "unknown"

    def release_warnings(self) -> list[str]:
        """Non-blocking concerns about shipping this config."""
        warnings: list[str] = []
        if self.production_url and not self.production_url.startswith("https://"):
            warnings.append(
                f"Production URL uses plain HTTP ({self.production_url}); "
                "iOS App Transport Security may block it."
            )
        return warnings
