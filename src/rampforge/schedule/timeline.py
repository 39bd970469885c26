"""Thread timelines: piecewise-linear thread count over time.

A timeline is the list of breakpoints where the slope of the thread count
changes.  It starts implicitly at ``(0s, 0)`` and is linear between
breakpoints; two breakpoints sharing a time describe an instantaneous jump.
Timelines are summed to merge the batches of a schedule and then read back as
a minimal list of profile operations.
"""

from __future__ import annotations

import math
from datetime import timedelta
from functools import reduce
from typing import TYPE_CHECKING

from rampforge._internal.config import RampForgeConfig
from rampforge._internal.errors import ScheduleError
from rampforge._internal.logging import get_logger
from rampforge.profile.values import format_span
from rampforge.schedule.operations import HoldFor, Operation, RampTo, RampToAndHold

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from rampforge._internal.types import Breakpoint
    from rampforge.profile.stage import Stage
    from rampforge.schedule.batch import Batch

logger = get_logger("schedule.timeline")

_ZERO = timedelta(0)
_ORIGIN: Breakpoint = (_ZERO, 0)


def _slope(start: Breakpoint, end: Breakpoint) -> float:
    """Threads per second between two breakpoints; jumps are infinite."""
    seconds = (end[0] - start[0]).total_seconds()
    change = end[1] - start[1]
    if not seconds:
        return math.inf if change >= 0 else -math.inf
    return change / seconds


class Timeline:
    """Compacted breakpoints of a thread count function.

    Breakpoints are added in time order through :meth:`add`, which drops a
    breakpoint as soon as the segments on both sides of it share a slope
    (within the configured tolerance).  Consecutive breakpoints are therefore
    never equal and consecutive segments never collinear.

    Args:
        slope_tolerance: Slope difference, in threads per second, under which
            two segments are considered collinear.
    """

    def __init__(self, slope_tolerance: float = 0.01) -> None:
        self._tolerance = slope_tolerance
        self._points: list[Breakpoint] = []
        # Slope of the segment ending at the breakpoint with the same index.
        self._slopes: list[float] = []

    @classmethod
    def from_points(
        cls,
        points: Iterable[Breakpoint],
        config: RampForgeConfig | None = None,
    ) -> Timeline:
        """Build a compacted timeline from breakpoints in time order."""
        timeline = cls((config or RampForgeConfig()).slope_tolerance)
        for elapsed, level in points:
            timeline.add(elapsed, level)
        return timeline

    @classmethod
    def from_stages(
        cls,
        stages: Sequence[Stage],
        config: RampForgeConfig | None = None,
    ) -> Timeline:
        """Return the thread count requested by *stages*, ending with a stop.

        Raises:
            ScheduleError: If a stage uses runtime expressions or holds for
                iterations, since neither has a known extent in time.
        """
        timeline = cls((config or RampForgeConfig()).slope_tolerance)
        elapsed = _ZERO
        for index, stage in enumerate(stages):
            if not stage.is_literal or stage.duration is None:
                msg = f"stage {index} ({stage.describe()}) has no literal extent in time"
                raise ScheduleError(msg)
            elapsed += stage.duration  # type: ignore[operator]
            timeline.add(elapsed, stage.concurrency)  # type: ignore[arg-type]
        timeline.add(elapsed, 0)
        return timeline

    @classmethod
    def from_batch(cls, batch: Batch, config: RampForgeConfig | None = None) -> Timeline:
        """Return the trapezoid described by a single batch."""
        timeline = cls((config or RampForgeConfig()).slope_tolerance)
        elapsed = batch.delay
        if elapsed > _ZERO:
            timeline.add(elapsed, 0)
        elapsed += batch.ramp_up
        timeline.add(elapsed, batch.concurrency)
        if batch.hold > _ZERO:
            elapsed += batch.hold
            timeline.add(elapsed, batch.concurrency)
        elapsed += batch.ramp_down
        timeline.add(elapsed, 0)
        return timeline

    @classmethod
    def from_batches(
        cls,
        batches: Iterable[Batch],
        config: RampForgeConfig | None = None,
    ) -> Timeline:
        """Return the sum of the timelines of all *batches*."""
        tolerance = (config or RampForgeConfig()).slope_tolerance
        return reduce(
            Timeline.plus,
            (cls.from_batch(b, config) for b in batches),
            cls(tolerance),
        )

    @property
    def points(self) -> tuple[Breakpoint, ...]:
        """Breakpoints in time order, excluding the implicit origin."""
        return tuple(self._points)

    def __iter__(self) -> Iterator[Breakpoint]:
        return iter(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Timeline):
            return NotImplemented
        return self._points == other._points

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Timeline({self._points!r})"

    def __add__(self, other: Timeline) -> Timeline:
        return self.plus(other)

    def add(self, elapsed: timedelta, level: float) -> None:
        """Append a breakpoint, dropping earlier ones it makes redundant.

        Args:
            elapsed: Time of the breakpoint.  Must not precede the last one.
            level: Thread count at that time.

        Raises:
            ScheduleError: If *elapsed* precedes the last breakpoint.
        """
        point = (elapsed, level)
        last = self._points[-1] if self._points else _ORIGIN
        if point == last:
            return
        if elapsed < last[0]:
            msg = f"breakpoint at {format_span(elapsed)} precedes {format_span(last[0])}"
            raise ScheduleError(msg)
        while self._points and self._same_slope(
            _slope(self._points[-1], point), self._slopes[-1]
        ):
            self._points.pop()
            self._slopes.pop()
        anchor = self._points[-1] if self._points else _ORIGIN
        self._points.append(point)
        self._slopes.append(_slope(anchor, point))

    def _same_slope(self, first: float, second: float) -> bool:
        if math.isinf(first) or math.isinf(second):
            return first == second
        return abs(first - second) < self._tolerance

    def plus(self, other: Timeline) -> Timeline:
        """Return the pointwise sum of this timeline and *other*.

        Breakpoints of both sides are merged in time order.  At a breakpoint
        of one side the other side contributes its level on the segment
        spanning that time, so a ramp of either side may cross breakpoints of
        the other.  Breakpoints sharing a time are paired in order, which keeps
        jumps vertical.
        """
        result = Timeline(self._tolerance)
        mine, theirs = self._points, other._points
        i = j = 0
        while i < len(mine) and j < len(theirs):
            my_time, their_time = mine[i][0], theirs[j][0]
            if my_time == their_time:
                result.add(my_time, _whole(mine[i][1] + theirs[j][1]))
                i += 1
                j += 1
            elif my_time < their_time:
                result.add(my_time, _whole(mine[i][1] + _level_before(theirs, j, my_time)))
                i += 1
            else:
                result.add(their_time, _whole(_level_before(mine, i, their_time) + theirs[j][1]))
                j += 1
        my_last = mine[-1][1] if mine else 0
        their_last = theirs[-1][1] if theirs else 0
        for elapsed, level in mine[i:]:
            result.add(elapsed, _whole(level + their_last))
        for elapsed, level in theirs[j:]:
            result.add(elapsed, _whole(my_last + level))
        return result

    def compact(self) -> Timeline:
        """Return a copy rebuilt breakpoint by breakpoint; a no-op on compacted input."""
        result = Timeline(self._tolerance)
        for elapsed, level in self._points:
            result.add(elapsed, level)
        return result

    def level_at(self, elapsed: timedelta) -> float:
        """Return the thread count reached when *elapsed* is reached.

        Jumps happening exactly at *elapsed* are not yet applied.
        """
        previous = _ORIGIN
        for point in self._points:
            if elapsed <= point[0]:
                if point[0] == previous[0]:
                    return float(previous[1])
                fraction = (elapsed - previous[0]) / (point[0] - previous[0])
                return previous[1] + (point[1] - previous[1]) * fraction
            previous = point
        return float(previous[1])

    def to_operations(self) -> list[Operation]:
        """Return the shortest operation list reproducing this timeline.

        Level changes become ramps and flat stretches become holds; a ramp
        directly followed by a hold is merged into one ``ramp_to_and_hold``.
        The final instantaneous stop that ends every schedule is implied and
        not emitted.
        """
        operations: list[Operation] = []
        previous_level = 0
        previous_time = _ZERO
        ramp: timedelta | None = None
        hold = _ZERO
        for elapsed, level in self._points:
            if level == previous_level:
                hold += elapsed - previous_time
            else:
                if ramp is not None:
                    operations.append(_ramp_operation(previous_level, ramp, hold))
                elif hold:
                    operations.append(HoldFor(hold))
                hold = _ZERO
                ramp = elapsed - previous_time
            previous_level, previous_time = level, elapsed
        if ramp is not None and (previous_level or ramp):
            operations.append(_ramp_operation(previous_level, ramp, hold))
        logger.debug(
            "Timeline of %d breakpoints read back as %d operations",
            len(self._points),
            len(operations),
            extra={"breakpoints": len(self._points), "operations": len(operations)},
        )
        return operations

    def describe(self) -> str:
        """Return a human-readable description.

        Returns:
            One line per breakpoint.
        """
        lines = [f"Timeline: {len(self._points)} breakpoints"]
        lines.extend(f"  {format_span(t)} -> {level}" for t, level in self._points)
        return "\n".join(lines)


def _ramp_operation(level: float, ramp: timedelta, hold: timedelta) -> Operation:
    if hold:
        return RampToAndHold(level, ramp, hold)
    return RampTo(level, ramp)


def _level_before(points: Sequence[Breakpoint], index: int, elapsed: timedelta) -> float:
    """Level of *points* at *elapsed*, which lies before ``points[index]``."""
    previous = points[index - 1] if index else _ORIGIN
    following = points[index]
    fraction = (elapsed - previous[0]) / (following[0] - previous[0])
    return previous[1] + (following[1] - previous[1]) * fraction


def _whole(level: float) -> float:
    # Rounded to a micro-thread; whole counts stay ints.
    level = round(level, 6)
    return int(level) if float(level).is_integer() else level
