"""Load profiles: the stages a test asks for.

A profile is an ordered list of :class:`Stage` objects, each reaching (or
keeping) a thread count over a duration.  :class:`LoadProfile` builds one with
chained ``ramp_to`` / ``hold_for`` calls.
"""

from __future__ import annotations

from rampforge.profile.builder import LoadProfile
from rampforge.profile.stage import Stage
from rampforge.profile.values import Expression

__all__ = [
    "Expression",
    "LoadProfile",
    "Stage",
]
