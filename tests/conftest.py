"""Pytest configuration and fixtures for arcnet tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from arcnet.logger import reset_logger
from arcnet.models import AoaTask

EXAMPLES_DIR = Path(__file__).parent.parent / "examples"


@pytest.fixture(autouse=True)
def clean_global_state() -> Iterator[None]:
    """Reset the logger around every test."""
    reset_logger()
    yield
    reset_logger()


@pytest.fixture
def sample_network() -> list[AoaTask]:
    """Six events, eight edges (one dummy). Duration 21.9, critical path 1-3-5-6."""
    return [
        AoaTask(id="1-2", name="Site survey", duration=2.4),
        AoaTask(id="1-3", name="Order materials", duration=4.6),
        AoaTask(id="2-4", name="Electrical rough-in", duration=8.2),
        AoaTask(id="2-5", name="Plumbing rough-in", duration=4.2),
        AoaTask(id="3-2", name="Dummy", duration=0.0, is_dummy=True),
        AoaTask(id="3-5", name="Partition walls", duration=13.2),
        AoaTask(id="4-6", name="Lighting fixtures", duration=4.1),
        AoaTask(id="5-6", name="Finishing", duration=4.1),
    ]


@pytest.fixture
def sample_records(sample_network: list[AoaTask]) -> list[dict[str, object]]:
    """The sample network as raw records, the way a project file delivers it."""
    return [task.to_record() for task in sample_network]


@pytest.fixture
def examples_dir() -> Path:
    return EXAMPLES_DIR
