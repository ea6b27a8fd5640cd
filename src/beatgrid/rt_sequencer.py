"""
16-step sequencer clock and transport.
- Ticks once per sixteenth note at an interval derived from BPM.
- Calls a step callback per tick; decides *when*, never *what* plays.
- Time comes from an injectable timer so tests can step it by hand.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

from .constants import DEFAULT_MASTER_GAIN, DEFAULT_TEMPO, STEPS

logger = logging.getLogger(__name__)


def interval_ms(bpm: float) -> float:
    """Milliseconds per sixteenth note: (60 / bpm) * 1000 / 4."""
    return 15000.0 / float(bpm)


@dataclass
class SequencerState:
    current_step: int = 0
    tempo_bpm: int = DEFAULT_TEMPO
    is_running: bool = False
    master_gain: float = DEFAULT_MASTER_GAIN


# ---------- timers ----------

class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Timer(Protocol):
    def call_every(self, interval_s: float, fn: Callable[[], None]) -> TimerHandle: ...


class _ManualJob:
    def __init__(self, timer: "ManualTimer", interval_s: float, fn: Callable[[], None]):
        self.timer = timer
        self.interval_s = interval_s
        self.fn = fn
        self.next_due = timer.now + interval_s
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimer:
    """
    Deterministic timer: nothing fires until `advance()` moves time forward.
    Jobs due at the same instant fire in scheduling order.
    """
    def __init__(self):
        self.now = 0.0
        self._jobs: List[_ManualJob] = []

    def call_every(self, interval_s: float, fn: Callable[[], None]) -> _ManualJob:
        if interval_s <= 0:
            raise ValueError(f"interval must be positive, got {interval_s}")
        job = _ManualJob(self, float(interval_s), fn)
        self._jobs.append(job)
        return job

    @property
    def active_jobs(self) -> List[_ManualJob]:
        self._jobs = [j for j in self._jobs if not j.cancelled]
        return list(self._jobs)

    def advance(self, seconds: float) -> None:
        """Move time forward, firing every job that falls due on the way."""
        target = self.now + float(seconds)
        # small epsilon so accumulated float error does not skip a boundary tick
        eps = 1e-9
        while True:
            live = self.active_jobs
            if not live:
                break
            job = min(live, key=lambda j: j.next_due)
            if job.next_due > target + eps:
                break
            self.now = max(self.now, job.next_due)
            job.next_due += job.interval_s
            job.fn()
        self.now = target

    def fire(self, count: int = 1) -> None:
        """Advance exactly to the next `count` due times of the earliest job."""
        for _ in range(int(count)):
            live = self.active_jobs
            if not live:
                return
            due = min(j.next_due for j in live)
            self.advance(due - self.now)


# ---------- clock ----------

class StepClock:
    """
    Transport with two states, stopped and running.

    start/stop reset the cursor to 0; set_tempo while running restarts the timer
    with the new interval and keeps the cursor where it is.
    """
    def __init__(self,
                 timer: Timer,
                 on_step: Callable[[int], None],
                 tempo_bpm: int = DEFAULT_TEMPO,
                 steps: int = STEPS,
                 on_start: Optional[Callable[[], None]] = None,
                 on_stop: Optional[Callable[[], None]] = None):
        self.timer = timer
        self.on_step = on_step
        self.on_start = on_start
        self.on_stop = on_stop
        self.steps = int(steps)
        self.state = SequencerState(tempo_bpm=int(tempo_bpm))
        self._handle: Optional[TimerHandle] = None

    @property
    def running(self) -> bool:
        return self.state.is_running

    @property
    def current_step(self) -> int:
        return self.state.current_step

    @property
    def interval_ms(self) -> float:
        return interval_ms(self.state.tempo_bpm)

    def _schedule(self) -> None:
        self._handle = self.timer.call_every(self.interval_ms / 1000.0, self.tick)

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def start(self) -> None:
        if self.state.is_running:
            return
        if self.on_start is not None:
            self.on_start()
        self.state.current_step = 0
        self.state.is_running = True
        self._schedule()
        logger.debug("Clock started at %d BPM (%.2f ms/step)", self.state.tempo_bpm, self.interval_ms)

    def stop(self) -> None:
        if not self.state.is_running:
            return
        self.state.is_running = False
        self._cancel()
        self.state.current_step = 0
        if self.on_stop is not None:
            self.on_stop()
        logger.debug("Clock stopped")

    def set_tempo(self, bpm: int) -> None:
        """Store a new tempo; takes effect from the next tick when running."""
        self.state.tempo_bpm = int(bpm)
        if self.state.is_running:
            self._cancel()
            self._schedule()

    def tick(self) -> None:
        if not self.state.is_running:
            return
        self.on_step(self.state.current_step)
        # the callback may have stopped the clock, which already reset the cursor
        if self.state.is_running:
            self.state.current_step = (self.state.current_step + 1) % self.steps
