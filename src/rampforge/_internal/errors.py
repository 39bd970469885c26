"""Custom exception hierarchy for RampForge."""

from __future__ import annotations


class RampForgeError(Exception):
    """Base exception for all RampForge errors.

    All custom exceptions in RampForge inherit from this class, making it
    easy to catch any RampForge-specific error with a single except clause.
    """


class StageError(RampForgeError):
    """Raised when a profile stage is invalid.

    Examples:
        - A stage has a negative concurrency, duration or iteration count.
        - A ramp or hold is added after holding for iterations.
        - Iterations are requested in a position no thread group supports.
    """


class ScheduleError(RampForgeError):
    """Raised when a schedule cannot be built or read back.

    Examples:
        - A stage holding a runtime expression reaches batch decomposition.
        - A schedule table row is malformed.
        - Batch decomposition hits an inconsistent internal state.
    """


class ConfigError(RampForgeError):
    """Raised when configuration is invalid or missing.

    Examples:
        - Required environment variable has an invalid value.
        - Configuration value is out of acceptable range.
    """
