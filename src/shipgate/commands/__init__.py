"""Typer sub-command groups for shipgate."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer


@dataclass
class CliOptions:
    """Global flags shared by every sub-command."""

    project: Optional[str] = None
    output_root: Optional[str] = None
    dry_run: bool = False


def cli_options(ctx: typer.Context) -> CliOptions:
    """Return the options stored by the root callback, or defaults."""
    return ctx.obj if isinstance(ctx.obj, CliOptions) else CliOptions()
