"""
Offline rendering: run a DrumMachine against a manual timer and an offline sink,
collecting exactly one sixteenth note of audio per tick.
"""

from __future__ import annotations
import logging
from typing import Optional
import numpy as np

from .constants import DEFAULT_KIT, DEFAULT_MASTER_GAIN, SR
from .machine import DrumMachine
from .pattern_store import MemoryStore, PatternStore, SavedPattern
from .rt_audio import OfflineSink
from .rt_sequencer import ManualTimer

logger = logging.getLogger(__name__)


def step_boundaries(bpm: int, steps: int, sample_rate: int = SR) -> np.ndarray:
    """Sample index of every step start (plus the end), rounded without drift."""
    samples_per_step = sample_rate * 15.0 / float(bpm)
    return np.round(np.arange(steps + 1) * samples_per_step).astype(np.int64)


def bounce(machine: DrumMachine, timer: ManualTimer, sink: OfflineSink,
           bars: int = 4, tail: bool = True) -> np.ndarray:
    """
    Play `bars` bars of the machine's pattern and return the mono mix.
    With `tail=True` the last hits ring out past the final bar.
    """
    steps = int(bars) * machine.clock.steps
    bounds = step_boundaries(machine.tempo, steps, sink.sample_rate)
    chunks = []
    machine.play()
    for k in range(steps):
        timer.fire()
        chunks.append(sink.pull(int(bounds[k + 1] - bounds[k])))
    machine.stop()
    if tail:
        chunks.append(sink.drain())
    audio = np.concatenate(chunks) if chunks else np.zeros(0, dtype=np.float32)
    logger.info("Bounced %d bars at %d BPM: %.2f s", bars, machine.tempo, len(audio) / sink.sample_rate)
    return audio


def render_pattern(saved: SavedPattern,
                   bars: int = 4,
                   sample_rate: int = SR,
                   master_gain: float = DEFAULT_MASTER_GAIN,
                   rng: Optional[np.random.Generator] = None,
                   tail: bool = True) -> np.ndarray:
    """Bounce a saved pattern with its own tempo and kit."""
    timer = ManualTimer()
    sink = OfflineSink(sample_rate)
    store = PatternStore(MemoryStore())
    store.save(saved.name, saved.pattern, saved.tempo, saved.kit or DEFAULT_KIT)
    machine = DrumMachine(sink, store, timer, sample_rate=sample_rate,
                          master_gain=master_gain, kit=saved.kit, rng=rng)
    machine.load(saved.name)
    return bounce(machine, timer, sink, bars=bars, tail=tail)
