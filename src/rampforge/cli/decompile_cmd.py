"""``rampforge decompile``: read a batch schedule back as profile operations."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape

from rampforge._internal.config import load_config
from rampforge._internal.errors import RampForgeError
from rampforge.cli.parsing import parse_rows
from rampforge.schedule.compiler import decompile

console = Console(stderr=True)


def decompile_cmd(
    rows: list[str] = typer.Argument(
        ...,
        help="Schedule rows written as threads,delay,ramp_up,hold,ramp_down (seconds).",
    ),
) -> None:
    """Print the minimal profile operations reproducing a batch schedule."""
    try:
        operations = decompile(parse_rows(rows), load_config())
    except RampForgeError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    if not operations:
        console.print("[yellow]The schedule runs no threads.[/yellow]")
        return
    for operation in operations:
        typer.echo(operation.describe())
