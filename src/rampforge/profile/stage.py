"""Profile stage: one ramp or hold segment of a load profile."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from rampforge.profile.values import Expression, format_span, parse_count, parse_span

if TYPE_CHECKING:
    from rampforge.profile.values import Count, Span


@dataclass(frozen=True, init=False)
class Stage:
    """One requested step of a load profile.

    A stage asks for *concurrency* threads to be reached (or kept) over
    *duration*.  The terminal stage of a simple profile may instead hold for a
    number of *iterations*, in which case *duration* is None.

    Values are parsed on construction: digit-only strings become literals,
    other strings become :class:`~rampforge.profile.values.Expression`, and
    numeric durations are seconds.

    Args:
        concurrency: Target thread count.  Must be >= 0 when literal.
        duration: Time taken to reach (or hold) the target, or None.
        iterations: Iterations each thread runs, or None.

    Raises:
        StageError: If a literal value is negative.

    Example::

        Stage(10, 30)                  # reach 10 threads over 30s
        Stage("${THREADS}", "${RAMP}")  # resolved by the engine at run time
        Stage(10, None, iterations=5)  # hold 10 threads for 5 iterations
    """

    concurrency: Count
    duration: Span | None
    iterations: Count | None

    def __init__(
        self,
        concurrency: int | str | Expression,
        duration: timedelta | float | str | Expression | None,
        iterations: int | str | Expression | None = None,
    ) -> None:
        parsed_concurrency = parse_count(concurrency, "concurrency")
        if parsed_concurrency is None:
            msg = "concurrency is required"
            raise TypeError(msg)
        object.__setattr__(self, "concurrency", parsed_concurrency)
        object.__setattr__(self, "duration", parse_span(duration, "duration"))
        object.__setattr__(self, "iterations", parse_count(iterations, "iterations"))

    @property
    def is_literal(self) -> bool:
        """True when no value of the stage depends on a runtime expression."""
        return (
            isinstance(self.concurrency, int)
            and not isinstance(self.duration, Expression)
            and not isinstance(self.iterations, Expression)
        )

    def describe(self) -> str:
        """Return a short description, e.g. ``10 threads over 30s``."""
        if self.duration is None:
            return f"{self.concurrency} threads for {self.iterations} iterations"
        return f"{self.concurrency} threads over {format_span(self.duration)}"
