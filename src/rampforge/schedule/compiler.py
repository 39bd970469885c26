"""Representation selection: compile stages forward and schedules back."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rampforge._internal.errors import ScheduleError
from rampforge._internal.logging import get_logger
from rampforge.profile.values import is_zero
from rampforge.schedule.batch import BatchSchedule, decompose
from rampforge.schedule.operations import HoldFor, HoldIterating, RampTo, RampToAndHold
from rampforge.schedule.timeline import Timeline
from rampforge.schedule.uniform import UniformRampSchedule, fits_uniform, synthesize_uniform

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rampforge._internal.config import RampForgeConfig
    from rampforge.profile.stage import Stage
    from rampforge.schedule.operations import Operation

logger = get_logger("schedule.compiler")

Schedule = UniformRampSchedule | BatchSchedule


def compile_stages(
    stages: Sequence[Stage],
    config: RampForgeConfig | None = None,
) -> Schedule:
    """Pick the representation for a profile and build it.

    Profiles with a single delay, ramp and hold compile to a
    :class:`UniformRampSchedule`; anything else is decomposed into a
    :class:`BatchSchedule`, which needs every value to be literal.

    Args:
        stages: Profile stages, in order.
        config: Decomposition settings.  Defaults to :class:`RampForgeConfig`.

    Returns:
        The compiled schedule.

    Raises:
        ScheduleError: If a multi-ramp profile uses runtime expressions or
            iteration holds.

    Example::

        schedule = compile_stages([Stage(0, 10), Stage(5, 30), Stage(5, 60)])
        # UniformRampSchedule(concurrency=5, ramp_up=30s, hold_duration=60s, ...)
    """
    if fits_uniform(stages):
        logger.debug(
            "Profile of %d stages fits a uniform ramp",
            len(stages),
            extra={"representation": "uniform", "stages": len(stages)},
        )
        return synthesize_uniform(stages)
    if not all(stage.is_literal for stage in stages):
        msg = "profiles with multiple ramps cannot use runtime expressions"
        raise ScheduleError(msg)
    logger.debug(
        "Profile of %d stages needs a batch schedule",
        len(stages),
        extra={"representation": "batch", "stages": len(stages)},
    )
    return decompose(stages, config)


def decompile(schedule: Schedule, config: RampForgeConfig | None = None) -> list[Operation]:
    """Return the minimal profile operations reproducing *schedule*.

    Batch schedules are summed into a single timeline and read back; uniform
    schedules map directly onto a delay, a ramp and a hold.

    Args:
        schedule: Schedule to read back.
        config: Compaction settings.  Defaults to :class:`RampForgeConfig`.

    Returns:
        Operations in call order.
    """
    if isinstance(schedule, UniformRampSchedule):
        return _decompile_uniform(schedule)
    return Timeline.from_batches(schedule, config).to_operations()


def _decompile_uniform(schedule: UniformRampSchedule) -> list[Operation]:
    operations: list[Operation] = []
    if schedule.initial_delay is not None and not is_zero(schedule.initial_delay):
        operations.append(HoldFor(schedule.initial_delay))
    if schedule.hold_duration is None:
        operations.append(RampTo(schedule.concurrency, schedule.ramp_up))
        operations.append(HoldIterating(schedule.hold_iterations))  # type: ignore[arg-type]
    elif is_zero(schedule.hold_duration):
        operations.append(RampTo(schedule.concurrency, schedule.ramp_up))
    else:
        operations.append(
            RampToAndHold(schedule.concurrency, schedule.ramp_up, schedule.hold_duration)
        )
    return operations
