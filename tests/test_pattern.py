"""
Tests for the step pattern model.
"""

import numpy as np
import pytest

from beatgrid.pattern import Pattern, load_rows
from beatgrid.tracks import TRACK_NAMES, Track, default_tracks


@pytest.fixture
def pattern():
    return Pattern(TRACK_NAMES)


class TestTracks:

    def test_default_tracks_order(self):
        names = [t.name for t in default_tracks()]
        assert names == ["Kick", "Snare", "Hi-Hat", "Open Hat", "Clap", "Crash", "Ride", "Perc"]

    def test_default_gain(self):
        assert all(t.gain == pytest.approx(0.8) for t in default_tracks())

    def test_gain_clamped(self):
        t = Track("Kick", "kick")
        t.set_gain(1.7)
        assert t.gain == 1.0
        t.set_gain(-0.2)
        assert t.gain == 0.0


class TestPattern:
    """Every track always holds 16 steps."""

    def test_starts_empty(self, pattern):
        assert pattern.track_names == list(TRACK_NAMES)
        assert all(len(row) == 16 for row in pattern.rows.values())
        assert pattern.active_count() == 0

    def test_toggle_twice_restores(self, pattern):
        assert pattern.toggle("Snare", 4) is True
        assert pattern.is_active("Snare", 4)
        assert pattern.toggle("Snare", 4) is False
        assert pattern == Pattern(TRACK_NAMES)

    def test_toggle_unknown_track_ignored(self, pattern):
        assert pattern.toggle("Cowbell", 0) is False
        assert pattern.active_count() == 0

    @pytest.mark.parametrize("step", [-1, 16, 100])
    def test_step_out_of_range(self, pattern, step):
        with pytest.raises(IndexError):
            pattern.toggle("Kick", step)

    def test_active_tracks_in_track_order(self, pattern):
        pattern.set_step("Perc", 0, True)
        pattern.set_step("Kick", 0, True)
        pattern.set_step("Clap", 0, True)
        assert pattern.active_tracks(0) == ["Kick", "Clap", "Perc"]
        assert pattern.active_tracks(1) == []

    def test_clear(self, pattern, rng):
        pattern.randomize(rng)
        pattern.clear()
        assert pattern.active_count() == 0
        assert all(len(row) == 16 for row in pattern.rows.values())

    def test_randomize_density(self):
        """Active-step rate converges to 0.3."""
        rng = np.random.default_rng(99)
        pattern = Pattern(TRACK_NAMES)
        total = active = 0
        for _ in range(500):
            pattern.randomize(rng)
            active += pattern.active_count()
            total += 16 * len(TRACK_NAMES)
        assert active / total == pytest.approx(0.3, abs=0.01)

    def test_randomize_keeps_shape(self, pattern, rng):
        pattern.randomize(rng)
        assert all(row.shape == (16,) and row.dtype == bool for row in pattern.rows.values())


class TestPatternSnapshot:

    def test_to_dict_from_dict(self, pattern, rng):
        pattern.randomize(rng)
        restored = Pattern.from_dict(pattern.to_dict(), TRACK_NAMES)
        assert restored == pattern

    def test_from_dict_normalizes_rows(self):
        data = {
            "Kick": [True, False, True],  # short row is padded
            "Snare": [True] * 20,          # long row is truncated
            "Cowbell": [True] * 16,        # unknown track is dropped
            "Clap": "xxxx",                # not a list
        }
        pat = Pattern.from_dict(data, TRACK_NAMES)
        assert pat.to_dict()["Kick"] == [True, False, True] + [False] * 13
        assert pat.to_dict()["Snare"] == [True] * 16
        assert "Cowbell" not in pat.rows
        assert pat.to_dict()["Clap"] == [False] * 16
        assert all(len(r) == 16 for r in pat.rows.values())

    def test_load_rows_in_place(self, pattern):
        pattern.set_step("Ride", 3, True)
        load_rows(pattern, {"Kick": [True] * 16})
        assert pattern.active_tracks(3) == ["Kick"]
        assert pattern.track_names == list(TRACK_NAMES)

    def test_copy_is_independent(self, pattern):
        other = pattern.copy()
        other.toggle("Kick", 0)
        assert not pattern.is_active("Kick", 0)
