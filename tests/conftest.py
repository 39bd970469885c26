"""Shared test fixtures for RampForge test suite."""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

import pytest

from rampforge.profile.builder import LoadProfile
from rampforge.profile.stage import Stage

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


# =============================================================================
# Pytest configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-apply markers based on test directory structure."""
    for item in items:
        test_path = str(item.fspath)
        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/e2e/" in test_path:
            item.add_marker(pytest.mark.e2e)


@pytest.fixture(autouse=True)
def _reset_rampforge_logger() -> Iterator[None]:
    """Undo handlers installed by setup_logging (the CLI installs one per run)."""
    yield
    logger = logging.getLogger("rampforge")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# =============================================================================
# Profiles
# =============================================================================


@pytest.fixture
def complex_profile() -> LoadProfile:
    """Profile with partial ramp-downs, re-climbs and plateaus."""
    return (
        LoadProfile()
        .hold_for(10)
        .ramp_to_and_hold(3, 10, 10)
        .ramp_to_and_hold(2, 10, 10)
        .ramp_to(5, 10)
        .ramp_to(3, 10)
        .ramp_to_and_hold(7, 10, 10)
        .ramp_to_and_hold(5, 10, 10)
        .ramp_to(1, 10)
    )


@pytest.fixture
def complex_rows() -> list[tuple[str, str, str, str, str]]:
    """Schedule table the complex profile compiles to."""
    return [
        ("1", "10", "4", "107", "0"),
        ("1", "14", "4", "101", "3"),
        ("1", "17", "4", "10", "10"),
        ("1", "50", "4", "62", "3"),
        ("2", "54", "7", "0", "10"),
        ("2", "70", "5", "35", "5"),
        ("2", "75", "5", "10", "10"),
    ]


@pytest.fixture
def random_stages() -> Callable[[int], list[Stage]]:
    """Factory of reproducible literal profiles.

    Stage durations are multiples of 10s, so distinct ramp slopes always
    differ by more than the default slope tolerance.
    """

    def _make(seed: int) -> list[Stage]:
        rng = random.Random(seed)
        return [
            Stage(rng.randint(0, 10), rng.choice((10, 20, 30)))
            for _ in range(rng.randint(1, 12))
        ]

    return _make
