"""Config commands -- view and initialise project build settings.

Provides the ``shipgate config`` sub-command group. Project settings live in
``shipgate.json`` at the project root and control the scene manifest, the
output folder, the application config resource and the engine command.
The application config resource itself belongs to the app and is only
inspected here, never written.
"""

from __future__ import annotations

import typer

from shipgate.commands import cli_options
from shipgate.config import find_project_file, resolve_settings, save_project_settings
from shipgate.exceptions import ShipgateError
from shipgate.gate import load_application_config
from shipgate.models import ProjectSettings
from shipgate.output import error, format_response, info, success, suggest, warning


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the resolved project settings and release readiness.

    Example::

        shipgate config show
        shipgate --json config show
    """
    opts = cli_options(ctx)
    try:
        settings = resolve_settings(opts.project, opts.output_root)
        app_config = load_application_config(settings.app_config_path)
    except ShipgateError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)

    project_file = find_project_file(settings.project_root)
    info(f"Project root: {settings.project_root}")
    info(f"Settings file: {project_file or '(defaults)'}")

    data = settings.model_dump(mode="json")
    if app_config is None:
        warning(f"Application config not found: {settings.app_config_path}")
        data["release_ready"] = False
    else:
        data["release_ready"] = app_config.is_ready_for_release_build
        data["production_url"] = app_config.diagnostic_endpoint()
    format_response(data)


@config_app.command("init")
def config_init(
    ctx: typer.Context,
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing settings file.",
    ),
) -> None:
    """Write a default ``shipgate.json`` into the project root.

    Example::

        shipgate config init
        shipgate -C path/to/project config init --force
    """
    opts = cli_options(ctx)
    try:
        current = resolve_settings(opts.project)
    except ShipgateError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code)

    existing = find_project_file(current.project_root)
    if existing is not None and not force:
        error(f"Settings file already exists: {existing}")
        suggest("Pass --force to overwrite it.")
        raise typer.Exit(code=1)

    path = save_project_settings(ProjectSettings(project_root=current.project_root))
    success(f"Wrote {path}")
