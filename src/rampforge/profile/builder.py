"""Fluent load profile builder."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from rampforge._internal.errors import StageError
from rampforge.profile.stage import Stage
from rampforge.profile.values import is_zero, parse_count
from rampforge.schedule.batch import BatchSchedule
from rampforge.schedule.compiler import compile_stages
from rampforge.schedule.operations import operations_to_stages
from rampforge.schedule.timeline import Timeline
from rampforge.schedule.uniform import fits_uniform

if TYPE_CHECKING:
    from collections.abc import Iterable

    from rampforge._internal.config import RampForgeConfig
    from rampforge.profile.values import Count, Expression
    from rampforge.schedule.compiler import Schedule
    from rampforge.schedule.operations import Operation

DurationLike = timedelta | float | str


class LoadProfile:
    """Build a list of stages by chaining ramps and holds.

    Every method returns the profile itself so calls can be chained.  A
    profile with a single delay, ramp and hold may use runtime expressions
    (strings such as ``"${__P(THREADS,1)}"``); any longer profile must be
    fully literal.

    Example::

        profile = (
            LoadProfile()
            .ramp_to_and_hold(10, 30, 120)
            .ramp_to(50, 60)
            .hold_for(300)
            .ramp_to(0, 30)
        )
        schedule = profile.compile()
    """

    def __init__(self) -> None:
        self._stages: list[Stage] = []

    @classmethod
    def for_duration(cls, threads: int, duration: DurationLike) -> LoadProfile:
        """Start *threads* at once and keep them running for *duration*.

        Raises:
            StageError: If *threads* is not positive.
        """
        _check_thread_count(threads)
        profile = cls()
        profile.add_stage(Stage(threads, timedelta(0)))
        profile.add_stage(Stage(threads, duration))
        return profile

    @classmethod
    def iterating(cls, threads: int, iterations: int) -> LoadProfile:
        """Start *threads* at once, each running *iterations* iterations.

        Raises:
            StageError: If *threads* or *iterations* is not positive.
        """
        _check_thread_count(threads)
        if iterations <= 0:
            msg = f"iterations must be >= 1, got {iterations}"
            raise StageError(msg)
        profile = cls()
        profile.add_stage(Stage(threads, timedelta(0)))
        profile.add_stage(Stage(threads, None, iterations))
        return profile

    @classmethod
    def from_operations(cls, operations: Iterable[Operation]) -> LoadProfile:
        """Rebuild a profile from decompiled operations."""
        profile = cls()
        for stage in operations_to_stages(operations):
            profile.add_stage(stage)
        return profile

    @property
    def stages(self) -> tuple[Stage, ...]:
        """Stages recorded so far, in order."""
        return tuple(self._stages)

    def ramp_to(self, threads: int | str | Expression, duration: DurationLike) -> LoadProfile:
        """Ramp up or down to *threads* over *duration*.

        Raises:
            StageError: If *threads* is negative or the profile already holds
                for iterations.
        """
        self._check_not_iterating("ramping up or down")
        self.add_stage(Stage(threads, duration))
        return self

    def hold_for(self, duration: DurationLike) -> LoadProfile:
        """Keep the current thread count for *duration*.

        Raises:
            StageError: If the profile already holds for iterations.
        """
        self._check_not_iterating("holding for a duration")
        self.add_stage(Stage(self._last_threads(), duration))
        return self

    def ramp_to_and_hold(
        self,
        threads: int | str | Expression,
        ramp: DurationLike,
        hold: DurationLike,
    ) -> LoadProfile:
        """Shorthand for ``ramp_to(threads, ramp).hold_for(hold)``."""
        return self.ramp_to(threads, ramp).hold_for(hold)

    def hold_iterating(self, iterations: int | str | Expression) -> LoadProfile:
        """Keep the current threads until each ran *iterations* iterations.

        Only supported right after a single ramp, or after an initial hold and
        a ramp.

        Raises:
            StageError: If *iterations* is negative or the profile has
                another shape (including one ending with no threads).
        """
        parsed = parse_count(iterations, "iterations")
        levels = [s.concurrency for s in self._stages]
        supported = (len(levels) == 1 and not is_zero(levels[0])) or (
            len(levels) == 2 and is_zero(levels[0]) and not is_zero(levels[1])
        )
        if not supported:
            msg = (
                "holding for iterations is only supported after a ramp, "
                "or after an initial hold and a ramp"
            )
            raise StageError(msg)
        self.add_stage(Stage(self._last_threads(), None, parsed))
        return self

    def add_stage(self, stage: Stage) -> LoadProfile:
        """Append *stage*, rejecting expressions in a multi-ramp profile.

        The stage is not kept when it is rejected.

        Raises:
            StageError: If the profile no longer fits a uniform ramp and any
                stage uses runtime expressions.
        """
        self._stages.append(stage)
        if not fits_uniform(self._stages) and not all(s.is_literal for s in self._stages):
            self._stages.pop()
            msg = "profiles with multiple ramps cannot use runtime expressions"
            raise StageError(msg)
        return self

    def fits_uniform(self) -> bool:
        """True when the profile compiles to a single delay, ramp and hold."""
        return fits_uniform(self._stages)

    def compile(self, config: RampForgeConfig | None = None) -> Schedule:
        """Compile the profile into its schedule representation."""
        return compile_stages(self._stages, config)

    def timeline(self, config: RampForgeConfig | None = None) -> Timeline:
        """Return the thread count over time the compiled schedule produces.

        Raises:
            ScheduleError: If the profile uses runtime expressions or holds
                for iterations.
        """
        schedule = self.compile(config)
        if isinstance(schedule, BatchSchedule):
            return Timeline.from_batches(schedule, config)
        return Timeline.from_stages(self._stages, config)

    def describe(self) -> str:
        """Return a human-readable description.

        Returns:
            One line per stage.
        """
        lines = [f"Profile: {len(self._stages)} stages"]
        lines.extend(f"  {i + 1}. {s.describe()}" for i, s in enumerate(self._stages))
        return "\n".join(lines)

    def _check_not_iterating(self, action: str) -> None:
        if self._stages and self._stages[-1].duration is None:
            msg = f"{action} after holding for iterations is not supported"
            raise StageError(msg)

    def _last_threads(self) -> Count:
        return self._stages[-1].concurrency if self._stages else 0


def _check_thread_count(threads: int) -> None:
    if threads <= 0:
        msg = f"threads must be >= 1, got {threads}"
        raise StageError(msg)
