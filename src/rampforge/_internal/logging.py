"""Structured logging setup for RampForge."""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

# Attributes passed through ``extra=`` that the JSON formatter keeps.
_CONTEXT_FIELDS = ("representation", "stages", "batches", "breakpoints", "operations")


class _JsonFormatter(logging.Formatter):
    """Structured JSON log formatter.

    Emits one-line JSON objects with keys: timestamp, level, logger, message,
    plus any compilation context fields attached to the record.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as a JSON string.

        Args:
            record: The log record to format.

        Returns:
            A single-line JSON string.
        """
        log_entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in _CONTEXT_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def setup_logging(
    level: int = logging.WARNING,
    *,
    json_format: bool = False,
) -> logging.Logger:
    """Configure and return the root RampForge logger.

    Installs a single stderr handler on the ``rampforge`` logger namespace.
    Calling it again only updates the level of the existing handler.

    Args:
        level: Logging level (e.g., ``logging.DEBUG``). Defaults to WARNING,
            since compilation is silent unless something goes wrong.
        json_format: If True, emit structured JSON logs. If False, emit
            human-readable logs.

    Returns:
        The configured ``rampforge`` root logger.
    """
    logger = logging.getLogger("rampforge")
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if json_format:
        formatter: logging.Formatter = _JsonFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a child logger under the ``rampforge`` namespace.

    Args:
        name: Logger name, appended to ``rampforge.`` prefix.
            Example: ``get_logger("schedule.batch")`` returns
            ``logging.getLogger("rampforge.schedule.batch")``.

    Returns:
        A child logger.
    """
    return logging.getLogger(f"rampforge.{name}")
