"""Uniform ramp schedule: one delay, one ramp and one hold (or iteration run).

This is the shape a plain thread group supports natively, and the only one
that tolerates runtime expressions.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from rampforge._internal.errors import ScheduleError
from rampforge._internal.logging import get_logger
from rampforge.profile.values import (
    add_spans,
    format_span,
    is_zero,
    parse_count,
    parse_span,
    render,
    subtract_spans,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rampforge.profile.stage import Stage
    from rampforge.profile.values import Count, Expression, Span

logger = get_logger("schedule.uniform")

# Engine property names of a plain thread group.
NUM_THREADS = "ThreadGroup.num_threads"
RAMP_TIME = "ThreadGroup.ramp_time"
DURATION = "ThreadGroup.duration"
DELAY = "ThreadGroup.delay"
SCHEDULER = "ThreadGroup.scheduler"
LOOPS = "LoopController.loops"


@dataclass(frozen=True)
class UniformRampSchedule:
    """Single delay + single ramp + single hold/iterate schedule.

    Attributes:
        concurrency: Threads reached at the end of the ramp.
        ramp_up: Time taken to start all threads.
        hold_duration: Time to keep all threads running after the ramp.
            Mutually exclusive with *hold_iterations*.
        hold_iterations: Iterations each thread runs.  Mutually exclusive with
            *hold_duration*.
        initial_delay: Time to wait before starting the ramp, or None when the
            schedule starts right away.

    Raises:
        ScheduleError: Unless exactly one of *hold_duration* and
            *hold_iterations* is set.
    """

    concurrency: Count = 1
    ramp_up: Span = timedelta(0)
    hold_duration: Span | None = None
    hold_iterations: Count | None = None
    initial_delay: Span | None = None

    def __post_init__(self) -> None:
        if (self.hold_duration is None) == (self.hold_iterations is None):
            msg = "exactly one of hold_duration and hold_iterations must be set"
            raise ScheduleError(msg)

    @property
    def duration(self) -> Span | None:
        """Engine duration, measured from load start and so including ramp-up.

        None when the schedule holds for iterations instead.
        """
        if self.hold_duration is None:
            return None
        if is_zero(self.ramp_up):
            return self.hold_duration
        if is_zero(self.hold_duration):
            return self.ramp_up
        return add_spans(self.hold_duration, self.ramp_up)

    @property
    def is_literal(self) -> bool:
        """True when no field depends on a runtime expression."""
        return all(
            isinstance(value, int | timedelta | None)
            for value in (
                self.concurrency,
                self.ramp_up,
                self.hold_duration,
                self.hold_iterations,
                self.initial_delay,
            )
        )

    def engine_fields(self) -> dict[str, str]:
        """Return the thread group properties this schedule maps onto.

        Spans are rendered in whole seconds.  When holding by duration the
        loop count is ``-1`` (loop until the duration elapses).
        """
        duration = self.duration
        fields = {
            NUM_THREADS: render(self.concurrency),
            RAMP_TIME: render(self.ramp_up),
        }
        if duration is not None:
            fields[LOOPS] = "-1"
            fields[DURATION] = render(duration)
        else:
            fields[LOOPS] = render(self.hold_iterations)  # type: ignore[arg-type]
        if self.initial_delay is not None:
            fields[DELAY] = render(self.initial_delay)
        fields[SCHEDULER] = str(duration is not None or self.initial_delay is not None).lower()
        return fields

    @classmethod
    def from_engine_fields(
        cls,
        concurrency: int | str | Expression,
        ramp_up: timedelta | float | str | Expression | None,
        duration: timedelta | float | str | Expression | None,
        delay: timedelta | float | str | Expression | None = None,
        iterations: int | str | Expression | None = None,
    ) -> UniformRampSchedule:
        """Rebuild a schedule from thread group properties.

        The engine duration includes the ramp-up, so the hold is recovered by
        subtracting it (as a deferred expression when either side is one).

        Raises:
            ScheduleError: If neither a duration nor iterations are given.
        """
        parsed_ramp = parse_span(ramp_up, "ramp_up") or timedelta(0)
        parsed_duration = parse_span(duration, "duration")
        hold = None if parsed_duration is None else subtract_spans(parsed_duration, parsed_ramp)
        return cls(
            concurrency=parse_count(concurrency, "concurrency"),  # type: ignore[arg-type]
            ramp_up=parsed_ramp,
            hold_duration=hold,
            hold_iterations=None if hold is not None else parse_count(iterations, "iterations"),
            initial_delay=parse_span(delay, "delay"),
        )

    def describe(self) -> str:
        """Return a human-readable description.

        Returns:
            Description string.
        """
        parts = []
        if self.initial_delay is not None and not is_zero(self.initial_delay):
            parts.append(f"wait {format_span(self.initial_delay)}")
        parts.append(f"ramp to {self.concurrency} over {format_span(self.ramp_up)}")
        if self.hold_duration is not None:
            parts.append(f"hold {format_span(self.hold_duration)}")
        else:
            parts.append(f"iterate {self.hold_iterations} times")
        return "Uniform: " + ", ".join(parts)


def fits_uniform(stages: Sequence[Stage]) -> bool:
    """Return True when *stages* can be expressed as a uniform ramp schedule.

    Fitting shapes: no stage or a single stage; two stages starting from zero
    threads or keeping the same thread count; three stages starting from zero
    threads whose last two keep the same thread count.  A profile that
    decreases concurrency anywhere never fits.
    """
    if len(stages) <= 1:
        return True
    first, second = stages[0], stages[1]
    if len(stages) == 2:
        return is_zero(first.concurrency) or first.concurrency == second.concurrency
    if len(stages) == 3:
        return is_zero(first.concurrency) and second.concurrency == stages[2].concurrency
    return False


def synthesize_uniform(stages: Sequence[Stage]) -> UniformRampSchedule:
    """Map up to three stages onto a uniform ramp schedule.

    Never fails: stages beyond the third are ignored, so callers must check
    :func:`fits_uniform` first for anything but trivially simple profiles.

    A first stage with zero threads is the initial delay; otherwise it is the
    ramp-up.  Later stages override the thread count and iterations, and the
    stage after the ramp provides the hold.

    Args:
        stages: Profile stages, in order.

    Returns:
        The synthesized schedule.  An empty profile runs one thread for one
        iteration.
    """
    threads: Count = 1
    iterations: Count | None = 1
    ramp_up: Span | None = None
    hold: Span | None = None
    delay: Span | None = None
    if stages:
        first = stages[0]
        starts_idle = is_zero(first.concurrency)
        if starts_idle:
            delay = first.duration
        else:
            ramp_up = first.duration
            threads = first.concurrency
        iterations = first.iterations
        if len(stages) > 1:
            second = stages[1]
            threads = second.concurrency
            iterations = second.iterations
            if starts_idle:
                ramp_up = second.duration
                if len(stages) > 2:
                    last = stages[2]
                    hold = last.duration
                    iterations = last.iterations
            else:
                hold = second.duration

    if hold is None and iterations is not None:
        schedule = UniformRampSchedule(
            concurrency=threads,
            ramp_up=ramp_up or timedelta(0),
            hold_iterations=iterations,
            initial_delay=delay,
        )
    else:
        schedule = UniformRampSchedule(
            concurrency=threads,
            ramp_up=ramp_up or timedelta(0),
            hold_duration=timedelta(0) if hold is None else hold,
            initial_delay=delay,
        )
    logger.debug("Synthesized %s", schedule.describe(), extra={"stages": len(stages)})
    return schedule
