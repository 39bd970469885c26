"""Literal-or-expression values carried by profile stages.

A stage value is either known when the profile is built (an ``int`` thread
count or a :class:`~datetime.timedelta` span) or an engine expression resolved
only at run time (for instance ``${__P(THREADS,1)}``).  Expressions are wrapped
in :class:`Expression` so every combination can be handled per variant.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import timedelta

from rampforge._internal.errors import ScheduleError, StageError

_INT_PATTERN = re.compile(r"^\d+$")
_MILLISECOND = timedelta(milliseconds=1)
_COMPOUND_VARIABLE = "org.apache.jmeter.engine.util.CompoundVariable"


@dataclass(frozen=True)
class Expression:
    """Engine expression evaluated at run time.

    Attributes:
        text: Raw expression text, e.g. ``${__P(RAMP,10)}``.
    """

    text: str

    def __str__(self) -> str:
        return self.text


# Thread count: a literal integer or a runtime expression.
Count = int | Expression

# Time span: a literal duration or a runtime expression.
Span = timedelta | Expression


def parse_count(value: int | str | Expression | None, name: str) -> Count | None:
    """Turn loose input into a thread or iteration count.

    Strings made only of digits become literal integers; any other string is
    kept as an :class:`Expression`.

    Args:
        value: Raw value, or None when absent.
        name: Parameter name used in error messages.

    Returns:
        The parsed count, or None.

    Raises:
        StageError: If a literal value is negative or of an unsupported type.
    """
    if value is None or isinstance(value, Expression):
        return value
    if isinstance(value, str):
        return int(value) if _INT_PATTERN.match(value) else Expression(value)
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{name} must be an int or an expression, got {type(value).__name__}"
        raise StageError(msg)
    if value < 0:
        msg = f"{name} must be non-negative, got {value}"
        raise StageError(msg)
    return value


def parse_span(
    value: timedelta | float | str | Expression | None,
    name: str,
) -> Span | None:
    """Turn loose input into a time span.

    Numbers and digit-only strings are seconds; other strings are kept as an
    :class:`Expression`.

    Args:
        value: Raw value, or None when absent.
        name: Parameter name used in error messages.

    Returns:
        The parsed span, or None.

    Raises:
        StageError: If a literal value is negative or of an unsupported type.
    """
    if value is None or isinstance(value, Expression):
        return value
    if isinstance(value, str):
        if not _INT_PATTERN.match(value):
            return Expression(value)
        value = timedelta(seconds=int(value))
    elif isinstance(value, bool):
        msg = f"{name} must be a duration or an expression, got bool"
        raise StageError(msg)
    elif isinstance(value, int | float):
        if value < 0:
            msg = f"{name} must be non-negative, got {value}"
            raise StageError(msg)
        value = timedelta(seconds=value)
    elif not isinstance(value, timedelta):
        msg = f"{name} must be a duration or an expression, got {type(value).__name__}"
        raise StageError(msg)
    if value < timedelta(0):
        msg = f"{name} must be non-negative, got {value}"
        raise StageError(msg)
    return value


def is_zero(value: Count | Span | None) -> bool:
    """Return True only for a literal zero count or a literal zero span."""
    if isinstance(value, timedelta):
        return not value
    return isinstance(value, int) and value == 0


def to_seconds(span: timedelta) -> int:
    """Convert a span to whole engine seconds, rounding partial seconds up.

    Sub-millisecond precision is dropped before rounding.
    """
    millis = span // _MILLISECOND
    return -(-millis // 1000)


def render(value: Count | Span) -> str:
    """Render a value the way the engine stores it (spans in whole seconds)."""
    if isinstance(value, timedelta):
        return str(to_seconds(value))
    return str(value)


def format_span(value: Span) -> str:
    """Return a short human-readable form of a span, e.g. ``10s`` or ``3.333s``."""
    if isinstance(value, Expression):
        return value.text
    return f"{value.total_seconds():g}s"


def jmeter_function(name: str, *args: str) -> str:
    """Build an engine function call, escaping argument separators."""
    if not args:
        return f"${{{name}}}"
    escaped = ",".join(a.replace("\\", "\\\\").replace(",", "\\,") for a in args)
    return f"${{{name}({escaped})}}"


def groovy_int(expression: str) -> str:
    """Return a groovy snippet that resolves *expression* to an int at run time.

    ``${`` is swapped for a ``#{`` placeholder (growing the run of ``#`` until
    it does not clash with the expression) so the engine does not resolve the
    expression before the snippet runs.
    """
    placeholder = "#"
    while f"{placeholder}{{" in expression:
        placeholder += "#"
    body = (
        expression.replace("${", f"{placeholder}{{")
        .replace("\\", "\\\\")
        .replace("'", "\\'")
    )
    return (
        f"(new {_COMPOUND_VARIABLE}('{body}'.replace('{placeholder}','$')).execute() as int)"
    )


def add_spans(first: Span, second: Span) -> Span:
    """Sum two spans, deferring to a runtime expression when either is one."""
    if isinstance(first, timedelta) and isinstance(second, timedelta):
        return first + second
    script = f"{groovy_int(render(first))} + {groovy_int(render(second))}"
    return Expression(jmeter_function("__groovy", script))


def subtract_spans(total: Span, part: Span) -> Span:
    """Subtract *part* from *total*, deferring to a runtime expression if needed.

    Raises:
        ScheduleError: If both spans are literal and *part* exceeds *total*.
    """
    if is_zero(part):
        return total
    if isinstance(total, timedelta) and isinstance(part, timedelta):
        if part > total:
            msg = f"span {format_span(part)} exceeds total {format_span(total)}"
            raise ScheduleError(msg)
        return total - part
    script = f"{groovy_int(render(total))} - {groovy_int(render(part))}"
    return Expression(jmeter_function("__groovy", script))
