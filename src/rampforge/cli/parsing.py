"""Command-line parsing of stage tokens and schedule rows."""

from __future__ import annotations

import re
from datetime import timedelta
from typing import TYPE_CHECKING

import typer

from rampforge.profile.builder import LoadProfile
from rampforge.schedule.batch import BatchSchedule

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

_DURATION_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)([smh]?)$")
_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 3600}

STAGE_HELP = (
    "Stages in order: ramp:<threads>:<duration>, hold:<duration>, iterate:<n>, "
    "ramp-hold:<threads>:<ramp>:<hold>. Durations are seconds or take an s/m/h suffix; "
    "values starting with ${ are passed to the engine as expressions."
)


def parse_duration(text: str) -> timedelta | str:
    """Parse ``90``, ``90s``, ``1.5m`` or ``2h``; ``${...}`` stays an expression.

    Raises:
        typer.BadParameter: If *text* is neither.
    """
    match = _DURATION_PATTERN.match(text.strip())
    if match:
        amount, unit = match.groups()
        return timedelta(seconds=float(amount) * _UNIT_SECONDS[unit])
    if text.startswith("${"):
        return text
    msg = f"invalid duration {text!r}: use seconds or an s, m or h suffix"
    raise typer.BadParameter(msg)


def parse_count(text: str, name: str) -> int | str:
    """Parse a non-negative integer; ``${...}`` stays an expression.

    Raises:
        typer.BadParameter: If *text* is neither.
    """
    text = text.strip()
    if text.isdigit():
        return int(text)
    if text.startswith("${"):
        return text
    msg = f"invalid {name} {text!r}: expected a non-negative integer"
    raise typer.BadParameter(msg)


def _ramp(profile: LoadProfile, args: list[str]) -> None:
    profile.ramp_to(parse_count(args[0], "threads"), parse_duration(args[1]))


def _hold(profile: LoadProfile, args: list[str]) -> None:
    profile.hold_for(parse_duration(args[0]))


def _iterate(profile: LoadProfile, args: list[str]) -> None:
    profile.hold_iterating(parse_count(args[0], "iterations"))


def _ramp_hold(profile: LoadProfile, args: list[str]) -> None:
    profile.ramp_to_and_hold(
        parse_count(args[0], "threads"),
        parse_duration(args[1]),
        parse_duration(args[2]),
    )


# kind -> (argument count, handler)
_STAGE_KINDS: dict[str, tuple[int, Callable[[LoadProfile, list[str]], None]]] = {
    "ramp": (2, _ramp),
    "hold": (1, _hold),
    "iterate": (1, _iterate),
    "ramp-hold": (3, _ramp_hold),
}


def _split_token(token: str) -> list[str]:
    """Split *token* on colons outside ``${...}`` expressions."""
    parts = [""]
    depth = 0
    for char in token:
        if char == ":" and not depth:
            parts.append("")
            continue
        if char == "{" and (depth or parts[-1].endswith("$")):
            depth += 1
        elif char == "}" and depth:
            depth -= 1
        parts[-1] += char
    return parts


def build_profile(tokens: Sequence[str]) -> LoadProfile:
    """Build a profile from stage tokens such as ``ramp:10:30s``.

    Raises:
        typer.BadParameter: If a token is malformed.
        StageError: If the profile builder rejects a stage.
    """
    profile = LoadProfile()
    for token in tokens:
        kind, *args = _split_token(token)
        if kind not in _STAGE_KINDS:
            msg = f"unknown stage {token!r}: expected one of {', '.join(_STAGE_KINDS)}"
            raise typer.BadParameter(msg)
        arity, handler = _STAGE_KINDS[kind]
        if len(args) != arity:
            msg = f"stage {token!r} takes {arity} value(s) after {kind!r}, got {len(args)}"
            raise typer.BadParameter(msg)
        handler(profile, args)
    return profile


def parse_rows(rows: Sequence[str]) -> BatchSchedule:
    """Parse schedule rows written as ``threads,delay,ramp_up,hold,ramp_down``.

    Raises:
        ScheduleError: If a row is malformed.
    """
    return BatchSchedule.from_rows(row.split(",") for row in rows)
