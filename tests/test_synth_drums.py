"""
Tests for procedural drum synthesis.
"""

import numpy as np
import pytest

from beatgrid.dsp import n_samples
from beatgrid.synth_drums import KITS, TIMBRES, generate, kit_recipes, render_kit


class TestGenerate:
    """Buffer shape, range and per-timbre formulas."""

    @pytest.mark.parametrize("timbre", TIMBRES)
    @pytest.mark.parametrize("sample_rate", [8000, 22050, 44100, 48000])
    def test_length_and_range(self, timbre, sample_rate, rng):
        """Every timbre yields round(sr * 0.5) samples inside [-1, 1]."""
        buf = generate(timbre, sample_rate, rng=rng)
        assert len(buf) == round(sample_rate * 0.5)
        assert buf.dtype == np.float32
        assert np.all(np.abs(buf) <= 1.0)

    def test_odd_sample_rate_rounds(self, rng):
        """Non-integer sample counts are rounded, not truncated."""
        buf = generate("kick", 11025, duration_s=0.5, rng=rng)
        assert len(buf) == n_samples(11025, 0.5) == 5512

    def test_kick_formula(self):
        """Kick is a falling sine under exp(-15t) at half amplitude."""
        sr = 8000
        buf = generate("kick", sr)
        t = np.arange(len(buf)) / sr
        expected = np.sin(2 * np.pi * 60 * np.exp(-30 * t) * t) * np.exp(-15 * t) * 0.5
        np.testing.assert_allclose(buf, expected, atol=1e-6)

    def test_ride_formula(self):
        sr = 8000
        buf = generate("ride", sr)
        t = np.arange(len(buf)) / sr
        expected = np.sin(2 * np.pi * (250 + 10 * np.sin(50 * t)) * t) * np.exp(-8 * t) * 0.3
        np.testing.assert_allclose(buf, expected, atol=1e-6)

    def test_perc_formula(self):
        sr = 8000
        buf = generate("perc", sr)
        t = np.arange(len(buf)) / sr
        expected = np.sin(2 * np.pi * 800 * np.exp(-20 * t) * t) * np.exp(-35 * t) * 0.4
        np.testing.assert_allclose(buf, expected, atol=1e-6)

    def test_tonal_timbres_ignore_rng(self):
        """Sine-only timbres are deterministic without a seed."""
        for timbre in ("kick", "ride", "perc"):
            np.testing.assert_array_equal(generate(timbre, 8000), generate(timbre, 8000))

    @pytest.mark.parametrize("timbre", ["snare", "hihat", "openhat", "clap", "crash"])
    def test_noise_timbres_reproducible_with_seed(self, timbre):
        a = generate(timbre, 8000, rng=np.random.default_rng(7))
        b = generate(timbre, 8000, rng=np.random.default_rng(7))
        c = generate(timbre, 8000, rng=np.random.default_rng(8))
        np.testing.assert_array_equal(a, b)
        assert not np.array_equal(a, c)

    @pytest.mark.parametrize("timbre,level,rate", [
        ("hihat", 0.4, 50.0),
        ("openhat", 0.3, 20.0),
        ("clap", 0.3, 30.0),
        ("crash", 0.4, 10.0),
    ])
    def test_noise_envelope_bound(self, timbre, level, rate, rng):
        """Noise hits never exceed level * exp(-rate t)."""
        sr = 8000
        buf = generate(timbre, sr, rng=rng)
        t = np.arange(len(buf)) / sr
        assert np.all(np.abs(buf) <= level * np.exp(-rate * t) + 1e-6)

    def test_snare_formula(self):
        """Snare is noise*0.3 plus a 200 Hz sine*0.2 under exp(-25t)."""
        sr = 8000
        buf = generate("snare", sr, rng=np.random.default_rng(21))
        t = np.arange(len(buf)) / sr
        noise = np.random.default_rng(21).uniform(-1.0, 1.0, size=len(buf))
        expected = (noise * 0.3 + np.sin(2 * np.pi * 200 * t) * 0.2) * np.exp(-25 * t)
        np.testing.assert_allclose(buf, expected, atol=1e-6)

    def test_snare_envelope_bound(self, rng):
        sr = 8000
        buf = generate("snare", sr, rng=rng)
        t = np.arange(len(buf)) / sr
        assert np.all(np.abs(buf) <= 0.5 * np.exp(-25 * t) + 1e-6)

    def test_first_sample_of_sines_is_zero(self):
        for timbre in ("kick", "ride", "perc"):
            assert generate(timbre, 8000)[0] == 0.0

    def test_unknown_timbre_is_silent(self):
        buf = generate("cowbell", 8000)
        assert len(buf) == 4000
        assert not buf.any()

    def test_invalid_sample_rate(self):
        with pytest.raises(ValueError):
            generate("kick", 0)


class TestKits:
    """Kit selection is a parameter with a default fallback."""

    def test_default_kit_covers_every_timbre(self):
        assert set(KITS["electronic"]) == set(TIMBRES)

    def test_unknown_kit_falls_back(self):
        assert kit_recipes("acoustic") is KITS["electronic"]

    def test_render_kit_buffers_are_read_only(self, rng):
        bank = render_kit({"Kick": "kick", "Snare": "snare"}, 8000, rng=rng)
        assert set(bank) == {"Kick", "Snare"}
        with pytest.raises(ValueError):
            bank["Kick"][0] = 1.0
