"""Validate command -- run the release gate without building anything.

Useful as a CI step ahead of a release job::

    shipgate validate
    shipgate --json validate --mode development
"""

from __future__ import annotations

import typer

from shipgate.commands import cli_options
from shipgate.config import resolve_settings
from shipgate.exceptions import ShipgateError
from shipgate.gate import ValidationGate
from shipgate.models import BuildMode
from shipgate.output import error, format_response, success, suggest


def validate_command(
    ctx: typer.Context,
    mode: BuildMode = typer.Option(
        BuildMode.RELEASE, "--mode", "-m",
        case_sensitive=False,
        help="Build mode to validate for.",
    ),
) -> None:
    """Check whether the application config is ready for a build.

    Prints the gate's decision and exits 1 if a release build would be
    refused.
    """
    opts = cli_options(ctx)
    try:
        settings = resolve_settings(opts.project, opts.output_root)
        decision = ValidationGate(settings.app_config_path).check(mode)
    except ShipgateError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)

    format_response(decision.model_dump(mode="json"))
    if not decision.allowed:
        error(f"Release validation failed: {decision.reason}")
        if decision.remediation:
            suggest(decision.remediation)
        raise typer.Exit(code=1)
    success(f"Validation passed ({mode.value}): {decision.reason}")
