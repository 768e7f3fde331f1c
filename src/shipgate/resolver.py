"""Turn a :class:`~shipgate.models.BuildIntent` into a concrete build request.

Composition is a pure function of the intent and the project settings: the
same inputs always yield the same :class:`~shipgate.models.BuildConfiguration`
(no clock, no randomness, no process-wide flags). The only side effect is
creating the output directory, which is idempotent.

Output layout under the project's output root::

    builds/
        android-debug.apk      # (android-apk, development)
        android-release.aab    # (android-aab, release)
        ios/                   # exported Xcode project

Repeated builds of the same platform and mode overwrite the same path.
"""

from __future__ import annotations

import logging
from pathlib import Path

from shipgate.models import (
    BuildConfiguration,
    BuildIntent,
    BuildMode,
    PlatformOptions,
    ProjectSettings,
    SymbolPolicy,
    TargetPlatform,
)

logger = logging.getLogger(__name__)

_ANDROID_EXTENSIONS = {
    TargetPlatform.ANDROID_APK: "apk",
    TargetPlatform.ANDROID_AAB: "aab",
}

_MODE_SUFFIXES = {
    BuildMode.DEVELOPMENT: "debug",
    BuildMode.RELEASE: "release",
}

IOS_PROJECT_DIRNAME = "ios"


def output_path_for(
    platform: TargetPlatform, mode: BuildMode, settings: ProjectSettings
) -> Path:
    """Return the deterministic artifact location for *platform* and *mode*.

    Android artifacts are single files named ``android-<debug|release>.<ext>``;
    iOS exports always land in the same project directory regardless of mode.
    """
    root = settings.output_dir
    if platform is TargetPlatform.IOS:
        return root / IOS_PROJECT_DIRNAME
    return root / f"android-{_MODE_SUFFIXES[mode]}.{_ANDROID_EXTENSIONS[platform]}"


def _android_options(
    platform: TargetPlatform, mode: BuildMode, settings: ProjectSettings
) -> PlatformOptions:
    development = mode is BuildMode.DEVELOPMENT
    android = settings.android
    return PlatformOptions(
        build_app_bundle=platform is TargetPlatform.ANDROID_AAB,
        create_symbols=SymbolPolicy.MINIMAL if development else SymbolPolicy.PUBLIC,
        development=development,
        allow_debugging=development,
        connect_profiler=development,
        scripting_backend=android.scripting_backend,
        target_architectures=tuple(android.architectures),
        min_sdk_version=android.min_sdk_version,
        target_sdk_version=android.target_sdk_version,
    )


def _ios_options(debugging_enabled: bool, settings: ProjectSettings) -> PlatformOptions:
    # The iOS export is a project, not a binary; "debug" only flips the
    # engine's development/debugging flags for the generated project.
    ios = settings.ios
    return PlatformOptions(
        export_project=True,
        development=debugging_enabled,
        allow_debugging=debugging_enabled,
        scripting_backend=ios.scripting_backend,
        target_os_version=ios.target_os_version,
        sdk=ios.sdk,
    )


def compose_platform_options(intent: BuildIntent, settings: ProjectSettings) -> PlatformOptions:
    """Join the Android and iOS axes of *intent* into one option set."""
    if intent.platform.is_android:
        return _android_options(intent.platform, intent.packaging_mode, settings)
    return _ios_options(intent.debugging_enabled, settings)


def ensure_output_dir(config: BuildConfiguration) -> Path:
    """Create the directory the artifact will be written to and return it."""
    if config.platform_options.export_project:
        directory = config.output_path
    else:
        directory = config.output_path.parent
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def resolve_build(
    intent: BuildIntent,
    settings: ProjectSettings,
    *,
    create_dirs: bool = True,
) -> BuildConfiguration:
    """Compose the :class:`~shipgate.models.BuildConfiguration` for *intent*.

    Args:
        intent: Requested platform plus its mode / debugging axis.
        settings: Project settings supplying the asset manifest, output root
            and per-platform SDK floors.
        create_dirs: Create the output directory as part of resolution.

    Returns:
        A frozen build configuration ready for the backend.
    """
    mode = intent.effective_mode
    config = BuildConfiguration(
        target_platform=intent.platform,
        mode=mode,
        asset_manifest=tuple(settings.assets),
        output_path=output_path_for(intent.platform, mode, settings),
        platform_options=compose_platform_options(intent, settings),
    )
    if create_dirs:
        ensure_output_dir(config)
    logger.debug(
        "Resolved %s (%s) -> %s", intent.platform.value, mode.value, config.output_path
    )
    return config
