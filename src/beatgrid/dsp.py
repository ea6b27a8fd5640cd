"""
Low-level DSP utilities: time axes, oscillators, noise, envelopes and gain helpers.
Designed for clarity, not micro-optimized for speed.

All functions are pure; the only state is the random generator passed in by the caller.
"""

from __future__ import annotations
from typing import Callable
import numpy as np


# ---------- Time ----------

def n_samples(sample_rate: int, length_s: float) -> int:
    """Number of samples covering `length_s` seconds (rounded to nearest)."""
    return int(round(float(sample_rate) * float(length_s)))


def time_axis(sample_rate: int, length_s: float) -> np.ndarray:
    """Sample times t = i / sample_rate for a buffer of `length_s` seconds."""
    n = n_samples(sample_rate, length_s)
    return np.arange(n, dtype=np.float64) / float(sample_rate)


# ---------- Oscillators ----------

def sine(freq: float, t: np.ndarray) -> np.ndarray:
    """Fixed-frequency sine over the time axis `t`."""
    return np.sin(2.0 * np.pi * freq * t)


def swept_sine(freq_fn: Callable[[np.ndarray], np.ndarray], t: np.ndarray) -> np.ndarray:
    """
    Sine whose frequency follows `freq_fn(t)`, evaluated as sin(2*pi*f(t)*t).

    This is not phase-integrated: the pitch drop sounds steeper than the
    frequency curve suggests, which is what gives the kick and perc their snap.
    """
    return np.sin(2.0 * np.pi * freq_fn(t) * t)


def white_noise(n: int, rng: np.random.Generator) -> np.ndarray:
    """Uniform noise in [-1, 1)."""
    return rng.uniform(-1.0, 1.0, size=int(n))


# ---------- Envelopes ----------

def env_decay(t: np.ndarray, rate: float) -> np.ndarray:
    """Exponential decay exp(-rate * t), commonly used for percussive tails."""
    return np.exp(-float(rate) * t)


# ---------- Gain ----------

def hard_clip(x: np.ndarray, limit: float = 1.0) -> np.ndarray:
    """Clamp samples to [-limit, limit]."""
    return np.clip(x, -limit, limit)


def clamp_unit(v: float) -> float:
    """Clamp a gain value to [0, 1]."""
    return float(min(1.0, max(0.0, float(v))))
