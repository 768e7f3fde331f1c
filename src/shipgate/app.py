"""Typer application and console-script entry point.

The root callback turns the global flags into an
:class:`~shipgate.output.OutputManager`, wires the ``shipgate`` logger to
stderr and leaves a :class:`CliOptions` on ``ctx.obj`` for the sub-commands.
:func:`main` is what the ``shipgate`` console script runs.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from shipgate import __version__
from shipgate.commands import CliOptions
from shipgate.commands.build import build_app
from shipgate.commands.config import config_app
from shipgate.commands.validate import validate_command
from shipgate.exit_codes import EXIT_CANCELLED, EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="shipgate",
    help="Build the app for Android and iOS, refusing unready release builds.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.add_typer(build_app, name="build", help="Build platform artifacts.")
app.add_typer(config_app, name="config", help="Project settings management.")
app.command("validate")(validate_command)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"shipgate {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", callback=_print_version, is_eager=True,
        help="Show version and exit.",
    ),
    project: Optional[str] = typer.Option(
        None, "--project", "-C", help="Project root directory. [default: .]",
    ),
    output_root: Optional[str] = typer.Option(
        None, "--output-root", help="Artifact directory relative to the project root.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log pipeline details to stderr."),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n",
        help="Run the pre-flight checks without launching the build engine.",
    ),
) -> None:
    """Build the app for Android and iOS, refusing unready release builds."""
    from shipgate.output import OutputFormat, OutputManager, configure_logging, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        fmt = OutputFormat.AUTO

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    configure_logging(output)

    ctx.obj = CliOptions(project=project, output_root=output_root, dry_run=dry_run)


def _setup_signal_handlers() -> None:
    def _on_sigint(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)

    signal.signal(signal.SIGINT, _on_sigint)


def _write_crash_log(exc: Exception) -> str:
    """Save the traceback of *exc* under the data directory; return the path."""
    from shipgate.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    log_path.write_text("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    return str(log_path)


def main() -> None:
    """Console-script entry point.

    A :class:`~shipgate.exceptions.ShipgateError` that escapes a command
    exits with its own code; any other exception is written to a crash log
    and exits 1. Ctrl-C exits 130.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)
    except Exception as exc:
        from shipgate.exceptions import ShipgateError
        from shipgate.output import error, suggest

        if not isinstance(exc, ShipgateError):
            error(f"Unexpected error. Debug log: {_write_crash_log(exc)}")
            sys.exit(EXIT_GENERIC_FAILURE)
        error(str(exc))
        if exc.remediation:
            suggest(exc.remediation)
        sys.exit(exc.exit_code)
