"""Pytest configuration - shared fixtures for the drum machine tests."""
from __future__ import annotations

import numpy as np
import pytest

from beatgrid.machine import DrumMachine, MachineObserver
from beatgrid.pattern_store import MemoryStore, PatternStore
from beatgrid.rt_audio import OfflineSink
from beatgrid.rt_sequencer import ManualTimer

# Low rate keeps rendering fast; formulas do not depend on it
TEST_SR = 8000


class RecordingObserver(MachineObserver):
    """Collects every notification for assertions."""

    def __init__(self):
        self.steps = []
        self.stops = 0
        self.pattern_changes = 0
        self.statuses = []

    def on_step(self, step):
        self.steps.append(step)

    def on_stop(self):
        self.stops += 1

    def on_pattern_changed(self):
        self.pattern_changes += 1

    def on_status(self, message):
        self.statuses.append(message)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def timer():
    return ManualTimer()


@pytest.fixture
def sink():
    return OfflineSink(TEST_SR, record=True)


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def pattern_store(memory_store):
    return PatternStore(memory_store)


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def machine(sink, pattern_store, timer, observer, rng):
    """DrumMachine wired to an offline sink and a hand-stepped timer."""
    return DrumMachine(sink, pattern_store, timer, observer=observer,
                       sample_rate=TEST_SR, rng=rng)
