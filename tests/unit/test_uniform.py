"""Tests for the uniform ramp schedule and its synthesizer."""

from __future__ import annotations

from datetime import timedelta

import pytest

from rampforge._internal.errors import ScheduleError
from rampforge.profile.stage import Stage
from rampforge.profile.values import Expression, groovy_int, jmeter_function
from rampforge.schedule.uniform import (
    DELAY,
    DURATION,
    LOOPS,
    NUM_THREADS,
    RAMP_TIME,
    SCHEDULER,
    UniformRampSchedule,
    fits_uniform,
    synthesize_uniform,
)


def _s(seconds: float) -> timedelta:
    return timedelta(seconds=seconds)


class TestFitsUniform:
    """Tests for the uniform fit predicate."""

    @pytest.mark.parametrize(
        "stages",
        [
            [],
            [Stage(5, 10)],
            [Stage(0, 10)],
            [Stage(0, 10), Stage(5, 10)],
            [Stage(5, 10), Stage(5, 20)],
            [Stage(0, 10), Stage(5, 10), Stage(5, 20)],
            [Stage(5, 10), Stage(5, None, 3)],
            [Stage("${T}", "${R}"), Stage("${T}", "${D}")],
        ],
    )
    def test_fits(self, stages: list[Stage]):
        assert fits_uniform(stages)

    @pytest.mark.parametrize(
        "stages",
        [
            [Stage(5, 10), Stage(3, 10)],
            [Stage(5, 10), Stage(6, 10)],
            [Stage(0, 10), Stage(5, 10), Stage(6, 10)],
            [Stage(0, 10), Stage(5, 10), Stage(0, 10)],
            [Stage(5, 10), Stage(5, 10), Stage(5, 10)],
            [Stage(0, 5), Stage(5, 10), Stage(5, 20), Stage(5, 10)],
        ],
    )
    def test_does_not_fit(self, stages: list[Stage]):
        assert not fits_uniform(stages)


class TestSynthesizeUniform:
    """Tests for synthesize_uniform."""

    def test_empty_profile(self):
        """No stages means one thread running one iteration."""
        schedule = synthesize_uniform([])
        assert schedule == UniformRampSchedule(concurrency=1, hold_iterations=1)
        assert schedule.engine_fields() == {
            NUM_THREADS: "1",
            RAMP_TIME: "0",
            LOOPS: "1",
            SCHEDULER: "false",
        }

    def test_single_ramp(self):
        """A lone ramp holds for nothing; the engine duration is the ramp."""
        schedule = synthesize_uniform([Stage(3, 10)])
        assert schedule.concurrency == 3
        assert schedule.ramp_up == _s(10)
        assert schedule.hold_duration == timedelta(0)
        assert schedule.duration == _s(10)

    def test_delay_then_ramp(self):
        schedule = synthesize_uniform([Stage(0, 10), Stage(3, 15)])
        assert schedule.initial_delay == _s(10)
        assert schedule.ramp_up == _s(15)
        assert schedule.duration == _s(15)
        assert schedule.engine_fields()[DELAY] == "10"

    def test_ramp_then_hold(self):
        schedule = synthesize_uniform([Stage(3, 10), Stage(3, 15)])
        assert schedule.ramp_up == _s(10)
        assert schedule.hold_duration == _s(15)
        assert schedule.duration == _s(25)
        assert schedule.initial_delay is None

    def test_delay_ramp_and_hold(self):
        schedule = synthesize_uniform([Stage(0, 10), Stage(3, 15), Stage(3, 20)])
        assert schedule == UniformRampSchedule(
            concurrency=3,
            ramp_up=_s(15),
            hold_duration=_s(20),
            initial_delay=_s(10),
        )
        assert schedule.engine_fields() == {
            NUM_THREADS: "3",
            RAMP_TIME: "15",
            LOOPS: "-1",
            DURATION: "35",
            DELAY: "10",
            SCHEDULER: "true",
        }

    def test_ramp_then_iterations(self):
        schedule = synthesize_uniform([Stage(3, 10), Stage(3, None, 5)])
        assert schedule.hold_iterations == 5
        assert schedule.hold_duration is None
        assert schedule.duration is None
        fields = schedule.engine_fields()
        assert fields[LOOPS] == "5"
        assert DURATION not in fields
        assert fields[SCHEDULER] == "false"

    def test_delay_ramp_then_iterations(self):
        schedule = synthesize_uniform([Stage(0, 10), Stage(3, 15), Stage(3, None, 5)])
        assert schedule.initial_delay == _s(10)
        assert schedule.ramp_up == _s(15)
        assert schedule.hold_iterations == 5
        assert schedule.engine_fields()[SCHEDULER] == "true"

    def test_instant_start_for_iterations(self):
        schedule = synthesize_uniform([Stage(4, 0), Stage(4, None, 2)])
        assert schedule.ramp_up == timedelta(0)
        assert schedule.hold_iterations == 2

    def test_expression_duration_deferred(self):
        """Expression spans sum into a groovy expression evaluated by the engine."""
        schedule = synthesize_uniform([Stage("${T}", "${R}"), Stage("${T}", "${D}")])
        assert schedule.concurrency == Expression("${T}")
        assert schedule.duration == Expression(
            jmeter_function("__groovy", f"{groovy_int('${D}')} + {groovy_int('${R}')}")
        )
        assert not schedule.is_literal


class TestUniformRampSchedule:
    """Tests for UniformRampSchedule itself."""

    def test_requires_exactly_one_hold(self):
        with pytest.raises(ScheduleError, match="exactly one"):
            UniformRampSchedule(concurrency=2)
        with pytest.raises(ScheduleError, match="exactly one"):
            UniformRampSchedule(concurrency=2, hold_duration=_s(1), hold_iterations=1)

    def test_from_engine_fields_subtracts_ramp(self):
        """The engine duration includes the ramp-up."""
        schedule = UniformRampSchedule.from_engine_fields(3, 10, 25)
        assert schedule.hold_duration == _s(15)
        assert schedule.duration == _s(25)

    def test_from_engine_fields_iterations(self):
        schedule = UniformRampSchedule.from_engine_fields("3", "10", None, iterations="5")
        assert schedule.hold_iterations == 5

    def test_from_engine_fields_expressions(self):
        schedule = UniformRampSchedule.from_engine_fields("${T}", "${R}", "${D}", delay="${W}")
        assert schedule.hold_duration == Expression(
            jmeter_function("__groovy", f"{groovy_int('${D}')} - {groovy_int('${R}')}")
        )
        assert schedule.initial_delay == Expression("${W}")

    def test_from_engine_fields_duration_shorter_than_ramp(self):
        with pytest.raises(ScheduleError):
            UniformRampSchedule.from_engine_fields(3, 20, 10)

    def test_describe(self):
        schedule = UniformRampSchedule(3, _s(15), hold_duration=_s(20), initial_delay=_s(10))
        assert schedule.describe() == "Uniform: wait 10s, ramp to 3 over 15s, hold 20s"
        iterating = UniformRampSchedule(3, _s(10), hold_iterations=5)
        assert iterating.describe() == "Uniform: ramp to 3 over 10s, iterate 5 times"
