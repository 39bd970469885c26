"""Shared type aliases for RampForge."""

from __future__ import annotations

from datetime import timedelta

# One row of the persisted schedule table:
# (concurrency, delay, ramp_up, hold, ramp_down) as decimal strings.
ScheduleRow = tuple[str, str, str, str, str]

# A timeline breakpoint: elapsed time and active thread count.  Levels read
# back from rounded schedule rows may be fractional.
Breakpoint = tuple[timedelta, float]
