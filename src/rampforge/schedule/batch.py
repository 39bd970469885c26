"""Batch schedule: overlapping trapezoidal thread batches.

Any literal profile, including ones that ramp down part-way or climb through
several plateaus, can be expressed as a set of batches.  Each batch starts
after a delay, ramps its threads up, holds them and ramps them down; the
pointwise sum of all batches reproduces the requested profile.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from rampforge._internal.config import RampForgeConfig
from rampforge._internal.errors import ScheduleError
from rampforge._internal.logging import get_logger
from rampforge.profile.values import format_span, to_seconds

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from rampforge._internal.types import ScheduleRow
    from rampforge.profile.stage import Stage

logger = get_logger("schedule.batch")

_ZERO = timedelta(0)


@dataclass(frozen=True)
class Batch:
    """One trapezoidal contribution to a batch schedule.

    Attributes:
        concurrency: Threads started by this batch.  Must be > 0.
        delay: Time from schedule start until the batch starts ramping up.
        ramp_up: Time taken to start all of the batch threads.
        hold: Time all of the batch threads keep running.
        ramp_down: Time taken to stop all of the batch threads.

    Raises:
        ScheduleError: If concurrency is not positive or a span is negative.
    """

    concurrency: int
    delay: timedelta = _ZERO
    ramp_up: timedelta = _ZERO
    hold: timedelta = _ZERO
    ramp_down: timedelta = _ZERO

    def __post_init__(self) -> None:
        if self.concurrency <= 0:
            msg = f"batch concurrency must be positive, got {self.concurrency}"
            raise ScheduleError(msg)
        for name in ("delay", "ramp_up", "hold", "ramp_down"):
            if getattr(self, name) < _ZERO:
                msg = f"batch {name} must be non-negative, got {getattr(self, name)}"
                raise ScheduleError(msg)

    @property
    def end(self) -> timedelta:
        """Time at which the last thread of the batch stops."""
        return self.delay + self.ramp_up + self.hold + self.ramp_down

    def concurrency_at(self, elapsed: timedelta) -> float:
        """Return the threads this batch contributes when *elapsed* is reached.

        Instantaneous changes happening exactly at *elapsed* are not yet
        applied, so the level at a stage boundary is the level the stage
        ramped or held to.
        """
        ramp_end = self.delay + self.ramp_up
        hold_end = ramp_end + self.hold
        if elapsed <= self.delay:
            return 0.0
        if elapsed <= ramp_end:
            return self.concurrency * ((elapsed - self.delay) / self.ramp_up)
        if elapsed <= hold_end:
            return float(self.concurrency)
        if elapsed <= self.end:
            return self.concurrency * ((self.end - elapsed) / self.ramp_down)
        return 0.0

    def to_row(self) -> ScheduleRow:
        """Return the schedule table row for this batch (spans in whole seconds)."""
        return (
            str(self.concurrency),
            str(to_seconds(self.delay)),
            str(to_seconds(self.ramp_up)),
            str(to_seconds(self.hold)),
            str(to_seconds(self.ramp_down)),
        )

    @classmethod
    def from_row(cls, row: Sequence[str | int]) -> Batch:
        """Parse a schedule table row.

        Args:
            row: ``(concurrency, delay, ramp_up, hold, ramp_down)`` with spans
                in seconds.

        Raises:
            ScheduleError: If the row does not hold five non-negative integers
                with a positive concurrency.
        """
        if len(row) != 5:
            msg = f"schedule row must have 5 columns, got {len(row)}: {list(row)!r}"
            raise ScheduleError(msg)
        try:
            values = [int(str(cell).strip()) for cell in row]
        except ValueError:
            msg = f"schedule row must only contain integers, got {list(row)!r}"
            raise ScheduleError(msg) from None
        concurrency, *spans = values
        delay, ramp_up, hold, ramp_down = (timedelta(seconds=s) for s in spans)
        return cls(concurrency, delay, ramp_up, hold, ramp_down)

    def describe(self) -> str:
        """Return a human-readable description.

        Returns:
            Description string.
        """
        return (
            f"{self.concurrency} threads: wait {format_span(self.delay)}, "
            f"up {format_span(self.ramp_up)}, hold {format_span(self.hold)}, "
            f"down {format_span(self.ramp_down)}"
        )


@dataclass(frozen=True)
class BatchSchedule:
    """Ordered set of batches whose sum reproduces a load profile.

    Attributes:
        batches: Batches sorted by delay.
    """

    batches: tuple[Batch, ...] = ()

    def __iter__(self) -> Iterator[Batch]:
        return iter(self.batches)

    def __len__(self) -> int:
        return len(self.batches)

    def __getitem__(self, index: int) -> Batch:
        return self.batches[index]

    @property
    def total_duration(self) -> timedelta:
        """Time at which the last batch ends."""
        return max((b.end for b in self.batches), default=_ZERO)

    def concurrency_at(self, elapsed: timedelta) -> float:
        """Return the total threads running when *elapsed* is reached."""
        return sum(b.concurrency_at(elapsed) for b in self.batches)

    def to_rows(self) -> list[ScheduleRow]:
        """Return the schedule table, one row per batch."""
        return [b.to_row() for b in self.batches]

    @classmethod
    def from_rows(cls, rows: Iterable[Sequence[str | int]]) -> BatchSchedule:
        """Build a schedule from table rows, keeping their order.

        Raises:
            ScheduleError: If any row is malformed.
        """
        return cls(tuple(Batch.from_row(row) for row in rows))

    def describe(self) -> str:
        """Return a human-readable description.

        Returns:
            Description listing each batch.
        """
        header = f"Batches: {len(self.batches)}, {format_span(self.total_duration)} total"
        lines = [f"  {i + 1}. {b.describe()}" for i, b in enumerate(self.batches)]
        return "\n".join([header, *lines])


@dataclass
class _OpenBatch:
    """Mutable batch used while walking the stages."""

    concurrency: int
    delay: timedelta
    ramp_up: timedelta = _ZERO
    hold: timedelta = _ZERO
    ramp_down: timedelta = _ZERO

    def freeze(self) -> Batch:
        return Batch(self.concurrency, self.delay, self.ramp_up, self.hold, self.ramp_down)


def interpolate(part: int, total: int, span: timedelta, resolution: timedelta) -> timedelta:
    """Return the share of *span* taken by *part* out of *total* threads.

    The result is floored to *resolution*, so adjacent shares never add up to
    more than *span*.
    """
    return (span * part // total) // resolution * resolution


def decompose(stages: Sequence[Stage], config: RampForgeConfig | None = None) -> BatchSchedule:
    """Decompose a literal profile into a batch schedule.

    Stages are walked keeping the current thread count and a stack of open
    batches (layers of threads not yet told to stop).  Raising the count opens
    a new layer; lowering it stops layers from the top of the stack, splitting
    the last one when only part of it must stop.  When a layer stops, the
    layer below it keeps running for at least as long, so its hold absorbs the
    stopped layer's whole run.

    Args:
        stages: Profile stages with literal values and durations.
        config: Interpolation resolution settings.  Defaults to
            :class:`RampForgeConfig`.

    Returns:
        Batch schedule sorted by delay.

    Raises:
        ScheduleError: If a stage uses runtime expressions or holds for
            iterations, or if the walk reaches an inconsistent state.
    """
    resolution = (config or RampForgeConfig()).resolution
    for index, stage in enumerate(stages):
        if not stage.is_literal:
            msg = (
                f"stage {index} ({stage.describe()}) uses runtime expressions, "
                "which batch schedules do not support"
            )
            raise ScheduleError(msg)
        if stage.duration is None:
            msg = (
                f"stage {index} ({stage.describe()}) holds for iterations, "
                "which batch schedules do not support"
            )
            raise ScheduleError(msg)

    closed: list[_OpenBatch] = []
    stack: list[_OpenBatch] = []
    curr = _OpenBatch(0, _ZERO)
    threads = 0
    delay = _ZERO
    for stage in stages:
        target: int = stage.concurrency  # type: ignore[assignment]
        span: timedelta = stage.duration  # type: ignore[assignment]
        if target == threads:
            curr.hold += span
        elif target > threads:
            stack.append(curr)
            curr = _OpenBatch(target - threads, delay, ramp_up=span)
        else:
            curr = _ramp_down(curr, threads - target, span, closed, stack, resolution)
        threads = target
        delay += span

    while stack:
        curr = _close(curr, closed, stack)

    closed.sort(key=lambda b: b.delay)
    schedule = BatchSchedule(tuple(b.freeze() for b in closed))
    logger.debug(
        "Decomposed %d stages into %d batches",
        len(stages),
        len(schedule),
        extra={"representation": "batch", "stages": len(stages), "batches": len(schedule)},
    )
    return schedule


def _ramp_down(
    curr: _OpenBatch,
    diff: int,
    span: timedelta,
    closed: list[_OpenBatch],
    stack: list[_OpenBatch],
    resolution: timedelta,
) -> _OpenBatch:
    """Stop *diff* threads over *span*, returning the new top open batch."""
    remaining = span
    while diff > curr.concurrency:
        curr.ramp_down = interpolate(curr.concurrency, diff, remaining, resolution)
        diff -= curr.concurrency
        remaining -= curr.ramp_down
        curr = _close(curr, closed, stack)
    if diff == curr.concurrency:
        curr.ramp_down = remaining
    else:
        # Only part of the layer stops: its last-started threads form a batch
        # of their own, finishing their ramp-up when the whole layer did.
        start = interpolate(diff, curr.concurrency, curr.ramp_up, resolution)
        stopping = _OpenBatch(
            diff,
            curr.delay + curr.ramp_up - start,
            ramp_up=start,
            hold=curr.hold,
            ramp_down=remaining,
        )
        curr.concurrency -= diff
        curr.ramp_up -= start
        curr.hold = _ZERO
        stack.append(curr)
        curr = stopping
    return _close(curr, closed, stack)


def _close(curr: _OpenBatch, closed: list[_OpenBatch], stack: list[_OpenBatch]) -> _OpenBatch:
    """Record *curr* as finished and resume the batch below it."""
    closed.append(curr)
    if not stack:
        msg = "no enclosing batch left to resume; batch decomposition state is inconsistent"
        raise ScheduleError(msg)
    enclosing = stack.pop()
    enclosing.hold += curr.ramp_up + curr.hold + curr.ramp_down
    return enclosing
