"""Tests for shipgate.resolver -- option composition and output layout."""

from __future__ import annotations

from pathlib import Path

import pytest

from shipgate.models import (
    AndroidSettings,
    BuildIntent,
    BuildMode,
    ProjectSettings,
    SymbolPolicy,
    TargetPlatform,
)
from shipgate.resolver import ensure_output_dir, output_path_for, resolve_build


class TestOutputPaths:
    def test_debug_apk(self, settings: ProjectSettings) -> None:
        config = resolve_build(BuildIntent.android_apk(), settings)
        assert config.output_path == settings.project_root / "builds" / "android-debug.apk"

    def test_release_aab(self, settings: ProjectSettings) -> None:
        config = resolve_build(BuildIntent.android_aab(), settings)
        assert config.output_path == settings.project_root / "builds" / "android-release.aab"

    def test_ios_is_single_project_dir(self, settings: ProjectSettings) -> None:
        dev = resolve_build(BuildIntent.ios(development=True), settings)
        rel = resolve_build(BuildIntent.ios(), settings)
        assert dev.output_path == rel.output_path == settings.project_root / "builds" / "ios"

    def test_other_combinations_are_total(self, settings: ProjectSettings) -> None:
        apk_release = output_path_for(TargetPlatform.ANDROID_APK, BuildMode.RELEASE, settings)
        aab_debug = output_path_for(TargetPlatform.ANDROID_AAB, BuildMode.DEVELOPMENT, settings)
        assert apk_release.name == "android-release.apk"
        assert aab_debug.name == "android-debug.aab"

    def test_custom_output_root(self, project_dir: Path) -> None:
        settings = ProjectSettings(project_root=project_dir, output_root="out/mobile")
        config = resolve_build(BuildIntent.android_apk(), settings)
        assert config.output_path == project_dir / "out" / "mobile" / "android-debug.apk"


class TestAndroidOptions:
    def test_debug_apk_options(self, settings: ProjectSettings) -> None:
        opts = resolve_build(BuildIntent.android_apk(), settings).platform_options
        assert opts.build_app_bundle is False
        assert opts.create_symbols is SymbolPolicy.MINIMAL
        assert opts.development and opts.allow_debugging and opts.connect_profiler
        assert opts.export_project is False

    def test_release_aab_options(self, settings: ProjectSettings) -> None:
        opts = resolve_build(BuildIntent.android_aab(), settings).platform_options
        assert opts.build_app_bundle is True
        assert opts.create_symbols is SymbolPolicy.PUBLIC
        assert not (opts.development or opts.allow_debugging or opts.connect_profiler)

    def test_common_android_settings(self, settings: ProjectSettings) -> None:
        opts = resolve_build(BuildIntent.android_aab(), settings).platform_options
        assert opts.min_sdk_version == 24
        assert opts.target_sdk_version == 34
        assert opts.scripting_backend == "il2cpp"
        assert opts.target_architectures == ("arm64",)
        assert opts.target_os_version is None

    def test_android_settings_override(self, project_dir: Path) -> None:
        settings = ProjectSettings(
            project_root=project_dir,
            android=AndroidSettings(min_sdk_version=26, architectures=["arm64", "armv7"]),
        )
        opts = resolve_build(BuildIntent.android_apk(), settings).platform_options
        assert opts.min_sdk_version == 26
        assert opts.target_architectures == ("arm64", "armv7")

    def test_release_apk_has_no_debugging(self, settings: ProjectSettings) -> None:
        intent = BuildIntent(platform=TargetPlatform.ANDROID_APK, packaging_mode=BuildMode.RELEASE)
        config = resolve_build(intent, settings)
        assert config.mode is BuildMode.RELEASE
        assert config.platform_options.build_app_bundle is False
        assert config.platform_options.allow_debugging is False


class TestIosOptions:
    def test_release_export(self, settings: ProjectSettings) -> None:
        config = resolve_build(BuildIntent.ios(), settings)
        opts = config.platform_options
        assert config.mode is BuildMode.RELEASE
        assert opts.export_project is True
        assert opts.development is False and opts.allow_debugging is False
        assert opts.target_os_version == "13.0"
        assert opts.sdk == "device"
        assert opts.min_sdk_version is None

    def test_development_flag(self, settings: ProjectSettings) -> None:
        config = resolve_build(BuildIntent.ios(development=True), settings)
        assert config.mode is BuildMode.DEVELOPMENT
        assert config.platform_options.development is True
        assert config.platform_options.allow_debugging is True
        assert config.platform_options.build_app_bundle is False


class TestManifest:
    def test_manifest_order_is_preserved(self, settings: ProjectSettings) -> None:
        config = resolve_build(BuildIntent.android_apk(), settings)
        assert config.asset_manifest == (
            "Assets/Scenes/TutorRoom.unity",
            "Assets/Scenes/Result.unity",
        )

    @pytest.mark.parametrize(
        "intent",
        [BuildIntent.android_apk(), BuildIntent.android_aab(), BuildIntent.ios()],
    )
    def test_manifest_shared_across_platforms(
        self, settings: ProjectSettings, intent: BuildIntent
    ) -> None:
        assert resolve_build(intent, settings).asset_manifest == tuple(settings.assets)


class TestDeterminism:
    @pytest.mark.parametrize(
        "intent",
        [BuildIntent.android_apk(), BuildIntent.android_aab(), BuildIntent.ios(development=True)],
    )
    def test_identical_inputs_identical_output(
        self, settings: ProjectSettings, intent: BuildIntent
    ) -> None:
        first = resolve_build(intent, settings)
        second = resolve_build(intent, settings)
        assert first == second
        assert first.model_dump_json() == second.model_dump_json()


class TestOutputDirectory:
    def test_android_creates_parent(self, settings: ProjectSettings) -> None:
        config = resolve_build(BuildIntent.android_apk(), settings)
        assert config.output_path.parent.is_dir()
        assert not config.output_path.exists()

    def test_ios_creates_project_dir(self, settings: ProjectSettings) -> None:
        config = resolve_build(BuildIntent.ios(), settings)
        assert config.output_path.is_dir()

    def test_create_dirs_false(self, settings: ProjectSettings) -> None:
        resolve_build(BuildIntent.android_apk(), settings, create_dirs=False)
        assert not settings.output_dir.exists()

    def test_ensure_output_dir_idempotent(self, settings: ProjectSettings) -> None:
        config = resolve_build(BuildIntent.android_aab(), settings)
        assert ensure_output_dir(config) == ensure_output_dir(config)
