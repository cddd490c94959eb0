"""Shared fixtures: a fresh nest per test with a deterministic clock."""

import tempfile
from pathlib import Path

import pytest

from nestable.adapters.clock import SteppingClock
from nestable.runtime import open_repository


@pytest.fixture
def nest_path():
    """Path for a nest file inside a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test.nest"


@pytest.fixture
def repo(nest_path):
    """An initialised repository whose clock advances one second per write."""
    repository = open_repository(nest_path, clock=SteppingClock(), create=True)
    yield repository
    repository.close()
