"""``rampforge timeline``: show the thread count over time of a profile."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from rampforge._internal.config import load_config
from rampforge._internal.errors import RampForgeError
from rampforge.cli.parsing import STAGE_HELP, build_profile
from rampforge.profile.values import format_span

console = Console(stderr=True)
output = Console()


def timeline_cmd(
    stages: list[str] = typer.Argument(..., help=STAGE_HELP),
) -> None:
    """Print the breakpoints of the thread count a profile produces."""
    try:
        timeline = build_profile(stages).timeline(load_config())
    except RampForgeError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    output.print(f"Timeline: {len(timeline)} breakpoints")
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Elapsed", justify="right")
    table.add_column("Threads", justify="right")
    table.add_row("0s", "0")
    for elapsed, level in timeline:
        table.add_row(format_span(elapsed), str(level))
    output.print(table)
