"""
Tests for the step clock state machine and its timers.
"""

import pytest

from beatgrid.rt_sequencer import ManualTimer, StepClock, interval_ms


def make_clock(timer, bpm=120, **kwargs):
    steps = []
    clock = StepClock(timer, steps.append, tempo_bpm=bpm, **kwargs)
    return clock, steps


class TestInterval:
    """One tick per sixteenth note."""

    @pytest.mark.parametrize("bpm,ms", [(120, 125.0), (60, 250.0), (200, 75.0), (90, 15000 / 90)])
    def test_interval_ms(self, bpm, ms):
        assert interval_ms(bpm) == pytest.approx(ms)

    def test_clock_uses_tempo(self, timer):
        clock, _ = make_clock(timer, bpm=150)
        assert clock.interval_ms == pytest.approx(100.0)

    def test_clock_does_not_clamp(self, timer):
        clock, _ = make_clock(timer, bpm=300)
        assert clock.state.tempo_bpm == 300
        assert clock.interval_ms == pytest.approx(50.0)


class TestTransport:
    """start/stop/tick transitions."""

    def test_seventeen_ticks_wrap(self, timer):
        """Cursor over 17 ticks after start is 0..15 then 0."""
        clock, steps = make_clock(timer)
        clock.start()
        timer.fire(17)
        assert steps == list(range(16)) + [0]
        assert clock.current_step == 1

    def test_ticks_follow_real_interval(self, timer):
        clock, steps = make_clock(timer, bpm=120)
        clock.start()
        timer.advance(0.124)
        assert steps == []
        timer.advance(0.001)
        assert steps == [0]
        timer.advance(0.5)
        assert steps == [0, 1, 2, 3, 4]

    def test_callback_runs_before_advance(self, timer):
        seen = []
        clock = StepClock(timer, lambda s: seen.append((s, clock.current_step)))
        clock.start()
        timer.fire(3)
        assert seen == [(0, 0), (1, 1), (2, 2)]

    def test_start_is_idempotent(self, timer):
        starts = []
        clock, steps = make_clock(timer, on_start=lambda: starts.append(1))
        clock.start()
        timer.fire(3)
        clock.start()
        assert starts == [1]
        assert clock.current_step == 3
        assert len(timer.active_jobs) == 1

    def test_stop_then_start_resets_cursor(self, timer):
        clock, steps = make_clock(timer)
        clock.start()
        timer.fire(7)
        clock.stop()
        assert clock.current_step == 0
        clock.start()
        timer.fire(1)
        assert steps[-1] == 0

    def test_stop_cancels_ticks(self, timer):
        stops = []
        clock, steps = make_clock(timer, on_stop=lambda: stops.append(1))
        clock.start()
        timer.fire(2)
        clock.stop()
        timer.advance(5.0)
        assert steps == [0, 1]
        assert stops == [1]
        assert not clock.running
        assert timer.active_jobs == []

    def test_stop_when_stopped_is_noop(self, timer):
        stops = []
        clock, _ = make_clock(timer, on_stop=lambda: stops.append(1))
        clock.stop()
        assert stops == []

    def test_on_start_runs_before_first_tick(self, timer):
        order = []
        clock = StepClock(timer, lambda s: order.append(("tick", s)), on_start=lambda: order.append(("start",)))
        clock.start()
        timer.fire()
        assert order == [("start",), ("tick", 0)]

    def test_tick_while_stopped_ignored(self, timer):
        clock, steps = make_clock(timer)
        clock.tick()
        assert steps == []
        assert clock.current_step == 0

    def test_stop_from_inside_callback(self, timer):
        def on_step(s):
            if s == 2:
                clock.stop()
        clock = StepClock(timer, on_step)
        clock.start()
        timer.advance(10.0)
        assert not clock.running
        assert clock.current_step == 0


class TestTempoChange:
    """Tempo changes while running re-derive the interval and keep the cursor."""

    def test_tempo_change_keeps_cursor(self, timer):
        clock, steps = make_clock(timer, bpm=120)
        clock.start()
        timer.fire(4)
        clock.set_tempo(60)
        assert clock.current_step == 4
        timer.advance(0.249)
        assert steps == [0, 1, 2, 3]
        timer.advance(0.001)
        assert steps == [0, 1, 2, 3, 4]

    def test_tempo_change_when_stopped(self, timer):
        clock, _ = make_clock(timer, bpm=120)
        clock.set_tempo(90)
        assert clock.state.tempo_bpm == 90
        assert timer.active_jobs == []


class TestTimers:

    def test_manual_timer_rejects_bad_interval(self, timer):
        with pytest.raises(ValueError):
            timer.call_every(0, lambda: None)

    def test_manual_timer_cancel(self, timer):
        calls = []
        job = timer.call_every(0.1, lambda: calls.append(timer.now))
        timer.advance(0.25)
        job.cancel()
        timer.advance(1.0)
        assert calls == [pytest.approx(0.1), pytest.approx(0.2)]

