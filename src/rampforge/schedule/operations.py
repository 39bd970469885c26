"""Profile operations: the fluent calls a decompiled schedule is rendered as."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from rampforge.profile.stage import Stage
from rampforge.profile.values import format_span

if TYPE_CHECKING:
    from collections.abc import Iterable

    from rampforge.profile.values import Count, Span


class Operation(ABC):
    """One call of the fluent profile API.

    Concrete operations expand into the stages the profile builder would
    record for the same call.
    """

    @abstractmethod
    def to_stages(self, previous: Count) -> list[Stage]:
        """Return the stages this operation adds after *previous* threads.

        Args:
            previous: Thread count reached by the preceding operations.

        Returns:
            Stages to append to the profile.
        """

    @abstractmethod
    def describe(self) -> str:
        """Return the call as text, e.g. ``ramp_to(10, 30s)``."""


@dataclass(frozen=True)
class RampTo(Operation):
    """Ramp threads up or down to *concurrency* over *duration*."""

    concurrency: Count
    duration: Span

    def to_stages(self, previous: Count) -> list[Stage]:  # noqa: ARG002
        return [Stage(self.concurrency, self.duration)]

    def describe(self) -> str:
        return f"ramp_to({self.concurrency}, {format_span(self.duration)})"


@dataclass(frozen=True)
class HoldFor(Operation):
    """Keep the current thread count for *duration*."""

    duration: Span

    def to_stages(self, previous: Count) -> list[Stage]:
        return [Stage(previous, self.duration)]

    def describe(self) -> str:
        return f"hold_for({format_span(self.duration)})"


@dataclass(frozen=True)
class RampToAndHold(Operation):
    """Ramp to *concurrency* over *ramp_duration*, then hold for *hold_duration*."""

    concurrency: Count
    ramp_duration: Span
    hold_duration: Span

    def to_stages(self, previous: Count) -> list[Stage]:  # noqa: ARG002
        return [
            Stage(self.concurrency, self.ramp_duration),
            Stage(self.concurrency, self.hold_duration),
        ]

    def describe(self) -> str:
        return (
            f"ramp_to_and_hold({self.concurrency}, {format_span(self.ramp_duration)}, "
            f"{format_span(self.hold_duration)})"
        )


@dataclass(frozen=True)
class HoldIterating(Operation):
    """Keep the current threads until each ran *iterations* iterations."""

    iterations: Count

    def to_stages(self, previous: Count) -> list[Stage]:
        return [Stage(previous, None, self.iterations)]

    def describe(self) -> str:
        return f"hold_iterating({self.iterations})"


def operations_to_stages(operations: Iterable[Operation]) -> list[Stage]:
    """Expand *operations* into the stage list they describe.

    Args:
        operations: Operations in call order.

    Returns:
        Stages in order; the profile starts from zero threads.
    """
    stages: list[Stage] = []
    previous: Count = 0
    for operation in operations:
        added = operation.to_stages(previous)
        stages.extend(added)
        if added:
            previous = added[-1].concurrency
    return stages
