"""Main Typer application, entry point for the ``rampforge`` CLI."""

from __future__ import annotations

import logging

import typer

from rampforge import __version__
from rampforge._internal.logging import setup_logging
from rampforge.cli.compile_cmd import compile_cmd
from rampforge.cli.decompile_cmd import decompile_cmd
from rampforge.cli.timeline_cmd import timeline_cmd

app = typer.Typer(
    name="rampforge",
    help="Compile load ramp profiles into thread schedules and back.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("compile", help="Compile a load profile into its thread schedule.")(compile_cmd)
app.command("decompile", help="Read schedule rows back as profile operations.")(decompile_cmd)
app.command("timeline", help="Show the thread count over time of a profile.")(timeline_cmd)


def _version_callback(value: bool) -> None:
    """Print version and exit.

    Args:
        value: True if --version was passed.
    """
    if value:
        typer.echo(f"rampforge {__version__}")
        raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose (DEBUG) logging.",
    ),
) -> None:
    """RampForge: compile load ramp profiles into thread schedules and back."""
    setup_logging(logging.DEBUG if verbose else logging.WARNING)
