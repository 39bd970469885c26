"""RampForge: compile load ramp profiles into thread schedules and back."""

from __future__ import annotations

from rampforge.profile.builder import LoadProfile
from rampforge.profile.stage import Stage
from rampforge.profile.values import Expression
from rampforge.schedule.batch import Batch, BatchSchedule, decompose
from rampforge.schedule.compiler import compile_stages, decompile
from rampforge.schedule.operations import HoldFor, HoldIterating, Operation, RampTo, RampToAndHold
from rampforge.schedule.timeline import Timeline
from rampforge.schedule.uniform import UniformRampSchedule, fits_uniform, synthesize_uniform

__version__ = "0.1.0"

__all__ = [
    "Batch",
    "BatchSchedule",
    "Expression",
    "HoldFor",
    "HoldIterating",
    "LoadProfile",
    "Operation",
    "RampTo",
    "RampToAndHold",
    "Stage",
    "Timeline",
    "UniformRampSchedule",
    "compile_stages",
    "decompile",
    "decompose",
    "fits_uniform",
    "synthesize_uniform",
]
