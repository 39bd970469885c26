"""Configuration loading for RampForge."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta

from rampforge._internal.errors import ConfigError


@dataclass(frozen=True)
class RampForgeConfig:
    """Global RampForge configuration.

    Attributes:
        slope_tolerance: Maximum slope difference (threads per second) under
            which two consecutive timeline segments are merged.
        resolution: Time granularity used when interpolating ramp durations.
    """

    slope_tolerance: float = 0.01
    resolution: timedelta = timedelta(milliseconds=1)


def load_config() -> RampForgeConfig:
    """Load configuration from environment variables with defaults.

    Environment variables:
        RAMPFORGE_SLOPE_TOLERANCE: Timeline compaction tolerance (default: 0.01).
        RAMPFORGE_RESOLUTION_MS: Interpolation resolution in milliseconds
            (default: 1).

    Returns:
        Populated RampForgeConfig instance.

    Raises:
        ConfigError: If an environment variable has an invalid value.
    """
    tolerance_str = os.environ.get("RAMPFORGE_SLOPE_TOLERANCE", "0.01")
    resolution_str = os.environ.get("RAMPFORGE_RESOLUTION_MS", "1")

    try:
        tolerance = float(tolerance_str)
    except ValueError:
        msg = f"RAMPFORGE_SLOPE_TOLERANCE must be a number, got: {tolerance_str!r}"
        raise ConfigError(msg) from None

    if tolerance <= 0:
        msg = f"RAMPFORGE_SLOPE_TOLERANCE must be positive, got: {tolerance}"
        raise ConfigError(msg)

    try:
        resolution_ms = int(resolution_str)
    except ValueError:
        msg = f"RAMPFORGE_RESOLUTION_MS must be an integer, got: {resolution_str!r}"
        raise ConfigError(msg) from None

    if resolution_ms < 1:
        msg = f"RAMPFORGE_RESOLUTION_MS must be >= 1, got: {resolution_ms}"
        raise ConfigError(msg)

    return RampForgeConfig(
        slope_tolerance=tolerance,
        resolution=timedelta(milliseconds=resolution_ms),
    )
