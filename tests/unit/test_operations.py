"""Tests for profile operations."""

from __future__ import annotations

from datetime import timedelta

import pytest

from rampforge.profile.stage import Stage
from rampforge.profile.values import Expression
from rampforge.schedule.operations import (
    HoldFor,
    HoldIterating,
    Operation,
    RampTo,
    RampToAndHold,
    operations_to_stages,
)


def _s(seconds: float) -> timedelta:
    return timedelta(seconds=seconds)


class TestOperation:
    """Tests for the Operation interface."""

    def test_cannot_instantiate_abc(self):
        with pytest.raises(TypeError):
            Operation()  # type: ignore[abstract]

    @pytest.mark.parametrize(
        ("operation", "text"),
        [
            (RampTo(3, _s(10)), "ramp_to(3, 10s)"),
            (HoldFor(_s(2.5)), "hold_for(2.5s)"),
            (RampToAndHold(5, _s(10), _s(60)), "ramp_to_and_hold(5, 10s, 60s)"),
            (HoldIterating(4), "hold_iterating(4)"),
            (RampTo(Expression("${T}"), Expression("${R}")), "ramp_to(${T}, ${R})"),
        ],
    )
    def test_describe(self, operation: Operation, text: str):
        assert operation.describe() == text


class TestToStages:
    """Tests for expanding operations into stages."""

    def test_ramp_to(self):
        assert RampTo(3, _s(10)).to_stages(0) == [Stage(3, 10)]

    def test_hold_for_keeps_previous_level(self):
        assert HoldFor(_s(5)).to_stages(7) == [Stage(7, 5)]

    def test_ramp_to_and_hold(self):
        assert RampToAndHold(2, _s(10), _s(20)).to_stages(5) == [Stage(2, 10), Stage(2, 20)]

    def test_hold_iterating(self):
        assert HoldIterating(3).to_stages(4) == [Stage(4, None, 3)]

    def test_operations_to_stages(self):
        operations = [
            HoldFor(_s(10)),
            RampToAndHold(3, _s(10), _s(10)),
            RampTo(1, _s(5)),
            HoldFor(_s(5)),
        ]
        assert operations_to_stages(operations) == [
            Stage(0, 10),
            Stage(3, 10),
            Stage(3, 10),
            Stage(1, 5),
            Stage(1, 5),
        ]

    def test_empty(self):
        assert operations_to_stages([]) == []
