"""Property tests across decomposition, timelines and decompilation."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

import pytest

from rampforge.profile.stage import Stage
from rampforge.schedule.batch import BatchSchedule, decompose
from rampforge.schedule.compiler import compile_stages, decompile
from rampforge.schedule.operations import operations_to_stages
from rampforge.schedule.timeline import Timeline
from rampforge.schedule.uniform import UniformRampSchedule, fits_uniform

if TYPE_CHECKING:
    from collections.abc import Callable

    from rampforge.profile.builder import LoadProfile

SEEDS = range(40)


def _targets(stages: list[Stage]) -> list[tuple[timedelta, float]]:
    """Return ``(elapsed, threads)`` at every stage end and ramp midpoint."""
    points: list[tuple[timedelta, float]] = []
    elapsed = timedelta(0)
    level = 0
    for stage in stages:
        target: int = stage.concurrency  # type: ignore[assignment]
        duration: timedelta = stage.duration  # type: ignore[assignment]
        points.append((elapsed + duration / 2, (level + target) / 2))
        elapsed += duration
        points.append((elapsed, float(target)))
        level = target
    return points


class TestConservation:
    """The batches of a schedule add up to the requested profile."""

    @pytest.mark.parametrize("seed", SEEDS)
    def test_random_profiles(self, seed: int, random_stages: Callable[[int], list[Stage]]):
        stages = random_stages(seed)
        schedule = decompose(stages)
        for elapsed, expected in _targets(stages):
            assert schedule.concurrency_at(elapsed) == pytest.approx(expected, abs=0.05), (
                f"seed {seed} at {elapsed}"
            )

    def test_regression_profile(self, complex_profile: LoadProfile):
        stages = list(complex_profile.stages)
        schedule = decompose(stages)
        for elapsed, expected in _targets(stages):
            assert schedule.concurrency_at(elapsed) == pytest.approx(expected, abs=0.01)

    @pytest.mark.parametrize("seed", SEEDS)
    def test_timeline_matches_batches(
        self,
        seed: int,
        random_stages: Callable[[int], list[Stage]],
    ):
        """The summed timeline agrees with the batches at every breakpoint."""
        schedule = decompose(random_stages(seed))
        timeline = Timeline.from_batches(schedule)
        for elapsed, level in timeline:
            assert schedule.concurrency_at(elapsed) == pytest.approx(
                timeline.level_at(elapsed), abs=0.05
            )
            assert level >= 0


class TestDecompileIdempotence:
    """Decompiling, recompiling and decompiling again is stable."""

    @pytest.mark.parametrize("seed", SEEDS)
    def test_random_profiles(self, seed: int, random_stages: Callable[[int], list[Stage]]):
        first = decompile(decompose(random_stages(seed)))
        second = decompile(decompose(operations_to_stages(first)))
        assert second == first

    @pytest.mark.parametrize("seed", SEEDS)
    def test_compaction_idempotent(
        self,
        seed: int,
        random_stages: Callable[[int], list[Stage]],
    ):
        timeline = Timeline.from_batches(decompose(random_stages(seed)))
        assert timeline.compact() == timeline

    def test_uniform_round_trip(self):
        stages = [Stage(0, 10), Stage(5, 30), Stage(5, 60)]
        schedule = compile_stages(stages)
        assert isinstance(schedule, UniformRampSchedule)
        assert operations_to_stages(decompile(schedule)) == stages


class TestFitBoundary:
    """Only non-decreasing single-plateau profiles fit the uniform model."""

    @pytest.mark.parametrize("seed", SEEDS)
    def test_decreasing_profiles_never_fit(
        self,
        seed: int,
        random_stages: Callable[[int], list[Stage]],
    ):
        stages = random_stages(seed)
        levels = [0] + [s.concurrency for s in stages]
        if any(b < a for a, b in zip(levels, levels[1:], strict=False)):
            assert not fits_uniform(stages)

    @pytest.mark.parametrize("seed", SEEDS)
    def test_fitting_profiles_compile_uniform(
        self,
        seed: int,
        random_stages: Callable[[int], list[Stage]],
    ):
        stages = random_stages(seed)
        schedule = compile_stages(stages)
        assert isinstance(schedule, UniformRampSchedule) == fits_uniform(stages)

    def test_rising_two_ramp_profile_needs_batches(self):
        """Two ramps with different slopes are not one delay, ramp and hold.

        The profile never decreases and has only two stages, but the first
        stage already ramps to a non-zero count, so a uniform ramp would
        lose the change of slope at 10s.
        """
        stages = [Stage(2, 10), Stage(5, 10)]
        assert not fits_uniform(stages)
        assert isinstance(compile_stages(stages), BatchSchedule)
