"""``rampforge compile``: compile a load profile into its thread schedule."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from rampforge._internal.config import load_config
from rampforge._internal.errors import RampForgeError
from rampforge.cli.parsing import STAGE_HELP, build_profile
from rampforge.profile.values import format_span
from rampforge.schedule.batch import BatchSchedule
from rampforge.schedule.uniform import UniformRampSchedule

console = Console(stderr=True)
output = Console()


def _uniform_table(schedule: UniformRampSchedule) -> Table:
    """Build a table of the thread group properties of a uniform schedule.

    Args:
        schedule: Compiled uniform schedule.

    Returns:
        Formatted Rich Table.
    """
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Property", style="bold")
    table.add_column("Value", justify="right")
    for name, value in schedule.engine_fields().items():
        table.add_row(name, escape(value))
    return table


def _batch_table(schedule: BatchSchedule) -> Table:
    """Build the schedule table of a batch schedule, one row per batch.

    Args:
        schedule: Compiled batch schedule.

    Returns:
        Formatted Rich Table.
    """
    table = Table(show_header=True, header_style="bold cyan")
    for column in ("Threads", "Delay", "Ramp-up", "Hold", "Ramp-down"):
        table.add_column(column, justify="right")
    for row in schedule.to_rows():
        table.add_row(*row)
    return table


def compile_cmd(
    stages: list[str] = typer.Argument(..., help=STAGE_HELP),
    csv: bool = typer.Option(
        False,
        "--csv",
        help="Print batch schedule rows as comma-separated values.",
    ),
) -> None:
    """Compile a load profile into its thread schedule."""
    try:
        schedule = build_profile(stages).compile(load_config())
    except RampForgeError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    if isinstance(schedule, UniformRampSchedule):
        if csv:
            console.print("[yellow]--csv only applies to batch schedules.[/yellow]")
        output.print(escape(schedule.describe()))
        output.print(_uniform_table(schedule))
        return

    if csv:
        for row in schedule.to_rows():
            typer.echo(",".join(row))
        return
    output.print(
        f"Batch schedule: {len(schedule)} batches, {format_span(schedule.total_duration)} total"
    )
    output.print(_batch_table(schedule))
