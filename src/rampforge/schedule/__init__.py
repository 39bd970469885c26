"""Thread schedules compiled from load profiles.

Two representations exist: a :class:`UniformRampSchedule` (one delay, one
ramp, one hold) and a :class:`BatchSchedule` of overlapping trapezoidal
batches.  :func:`compile_stages` picks between them and :func:`decompile`
reads either back as a minimal list of profile operations.
"""

from __future__ import annotations

from rampforge.schedule.batch import Batch, BatchSchedule, decompose
from rampforge.schedule.compiler import compile_stages, decompile
from rampforge.schedule.operations import HoldFor, HoldIterating, Operation, RampTo, RampToAndHold
from rampforge.schedule.timeline import Timeline
from rampforge.schedule.uniform import UniformRampSchedule, fits_uniform, synthesize_uniform

__all__ = [
    "Batch",
    "BatchSchedule",
    "HoldFor",
    "HoldIterating",
    "Operation",
    "RampTo",
    "RampToAndHold",
    "Timeline",
    "UniformRampSchedule",
    "compile_stages",
    "decompile",
    "decompose",
    "fits_uniform",
    "synthesize_uniform",
]
