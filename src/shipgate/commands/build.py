"""Build commands -- package the app for Android and iOS.

Provides the ``shipgate build`` command group:

* ``build android-apk`` -- development APK for device testing.
* ``build android-aab`` -- release app bundle for the Play Store (gated).
* ``build ios`` -- Xcode project export; gated unless ``--development``.
* ``build all`` -- every platform in turn, skipping what the host can't build.
* ``build folder`` -- print (and optionally open) the artifact directory.

Each command resolves the project settings, runs the pipeline through
:class:`~shipgate.orchestrator.BuildOrchestrator` and exits non-zero when the
release gate refuses the build or the engine fails. With the global
``--dry-run`` flag the pre-flight checks run but the engine is not launched.

Usage::

    shipgate build android-apk
    shipgate build android-aab
    shipgate build ios --development
    shipgate build all --fail-fast
"""

from __future__ import annotations

from typing import NoReturn

import typer

from shipgate.backend import create_backend
from shipgate.commands import cli_options
from shipgate.config import resolve_settings
from shipgate.exceptions import BackendFailureError, ShipgateError
from shipgate.models import BuildIntent, BuildResult, TargetPlatform
from shipgate.orchestrator import BuildOrchestrator, PipelineStatus
from shipgate.output import (
    error,
    format_response,
    info,
    print_data,
    print_table,
    success,
    suggest,
    warning,
)


build_app = typer.Typer(no_args_is_help=True)


def _make_orchestrator(ctx: typer.Context) -> BuildOrchestrator:
    opts = cli_options(ctx)
    settings = resolve_settings(opts.project, opts.output_root)
    return BuildOrchestrator(settings, create_backend(settings))


def _fail(exc: ShipgateError) -> NoReturn:
    """Report *exc* on stderr and exit with its code."""
    error(str(exc))
    if isinstance(exc, BackendFailureError):
        for line in exc.result.messages:
            error(f"  {line}")
    if exc.remediation:
        suggest(exc.remediation)
    raise typer.Exit(code=exc.exit_code)


def _report_success(intent: BuildIntent, result: BuildResult) -> None:
    success(f"Build succeeded: {result.artifact_path}")
    info(f"Size: {result.size_mb:.2f} MB")
    if intent.platform is TargetPlatform.IOS:
        suggest("Open Unity-iPhone.xcodeproj in Xcode to complete the build.")
    format_response(result.model_dump(mode="json"))


def _run_pipeline(ctx: typer.Context, intent: BuildIntent) -> None:
    dry_run = cli_options(ctx).dry_run
    try:
        orchestrator = _make_orchestrator(ctx)
        if dry_run:
            config = orchestrator.plan(intent)
            success("Pre-flight checks passed (--dry-run, build engine not launched).")
            format_response(config.model_dump(mode="json"))
            return
        info(f"Building {intent.platform.value} ({intent.effective_mode.value})...")
        result = orchestrator.run(intent)
    except ShipgateError as exc:
        _fail(exc)
    _report_success(intent, result)


@build_app.command("android-apk")
def build_android_apk(ctx: typer.Context) -> None:
    """Build a development Android APK.

    Development builds skip the release gate; the app falls back to its
    debug endpoint at runtime.

    Example::

        shipgate build android-apk
    """
    _run_pipeline(ctx, BuildIntent.android_apk())


@build_app.command("android-aab")
def build_android_aab(ctx: typer.Context) -> None:
    """Build a release Android App Bundle for the Play Store.

    The application config must have a real production URL; otherwise the
    build is refused before the engine is launched.

    Example::

        shipgate build android-aab
    """
    _run_pipeline(ctx, BuildIntent.android_aab())


@build_app.command("ios")
def build_ios(
    ctx: typer.Context,
    development: bool = typer.Option(
        False, "--development",
        help="Export with development and script debugging enabled (skips the release gate).",
    ),
) -> None:
    """Export the iOS Xcode project (macOS only).

    Example::

        shipgate build ios
        shipgate build ios --development
    """
    _run_pipeline(ctx, BuildIntent.ios(development=development))


@build_app.command("all")
def build_all(
    ctx: typer.Context,
    ios_development: bool = typer.Option(
        False, "--ios-development",
        help="Export the iOS project as a development build.",
    ),
    fail_fast: bool = typer.Option(
        False, "--fail-fast",
        help="Stop at the first refused or failed platform.",
    ),
) -> None:
    """Build every platform: Android APK, Android AAB, then iOS.

    Platforms the host can't build (iOS off macOS) are skipped with a
    warning. Refused and failed platforms are reported and the batch keeps
    going unless ``--fail-fast`` is given; either way the exit status is
    non-zero if any platform was refused or failed.

    Example::

        shipgate build all
        shipgate --json build all --ios-development
    """
    dry_run = cli_options(ctx).dry_run
    info("Building all platforms...")
    try:
        orchestrator = _make_orchestrator(ctx)
        report = orchestrator.run_all(
            ios_development=ios_development, fail_fast=fail_fast, plan_only=dry_run
        )
    except ShipgateError as exc:
        _fail(exc)

    rows: list[list[str]] = []
    for outcome in report.outcomes:
        if outcome.status is PipelineStatus.SKIPPED:
            warning(outcome.message)
        elif outcome.status is PipelineStatus.DENIED:
            error(f"{outcome.platform.value}: release validation failed: {outcome.message}")
        elif outcome.status is PipelineStatus.FAILED:
            error(outcome.message)
        size = ""
        if outcome.result is not None and outcome.result.succeeded:
            size = f"{outcome.result.size_mb:.2f} MB"
        rows.append([outcome.platform.value, outcome.status.value, outcome.message, size])

    print_table(["platform", "status", "detail", "size"], rows, title="Build summary")

    if report.exit_code:
        raise typer.Exit(code=report.exit_code)
    success("All builds complete!")


@build_app.command("folder")
def build_folder(
    ctx: typer.Context,
    reveal: bool = typer.Option(
        False, "--reveal", help="Open the folder in the system file manager.",
    ),
) -> None:
    """Print the build output folder, creating it if needed.

    Example::

        shipgate build folder
        shipgate build folder --reveal
    """
    opts = cli_options(ctx)
    try:
        settings = resolve_settings(opts.project, opts.output_root)
    except ShipgateError as exc:
        _fail(exc)
    path = settings.output_dir.resolve()
    path.mkdir(parents=True, exist_ok=True)
    print_data(str(path))
    if reveal:
        typer.launch(str(path))
