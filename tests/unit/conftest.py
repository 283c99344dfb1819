"""
Unit test fixtures. The fakes themselves live in fakes.py so test modules
can import them directly.
"""
import pytest

from fakes import FIXED_NOW, RecordingExecutors


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def executors() -> RecordingExecutors:
    return RecordingExecutors()
