"""
Procedural drum synthesis: eight percussion timbres built from noise or swept sines
shaped by exponential decays. No samples are loaded.

Timbres are grouped in kits (a recipe per timbre). Only the "electronic" kit is
defined; other kit ids fall back to it.
"""

from __future__ import annotations
import logging
from typing import Callable, Dict, Mapping, Optional
import numpy as np

from .constants import BUFFER_SECONDS, DEFAULT_KIT
from .dsp import env_decay, hard_clip, sine, swept_sine, time_axis, white_noise

logger = logging.getLogger(__name__)

# A recipe maps (time axis, random source) -> raw signal
Recipe = Callable[[np.ndarray, np.random.Generator], np.ndarray]

TIMBRES: tuple[str, ...] = ("kick", "snare", "hihat", "openhat", "clap", "crash", "ride", "perc")


# ---------- electronic kit ----------

def _kick(t: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    body = swept_sine(lambda x: 60.0 * np.exp(-30.0 * x), t)
    return body * env_decay(t, 15.0) * 0.5


def _snare(t: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    noise = white_noise(len(t), rng) * 0.3
    tone = sine(200.0, t) * 0.2
    return (noise + tone) * env_decay(t, 25.0)


def _noise_hit(level: float, rate: float) -> Recipe:
    """Plain decaying noise burst (hats, clap, crash)."""
    def recipe(t: np.ndarray, rng: np.random.Generator) -> np.ndarray:
        return white_noise(len(t), rng) * level * env_decay(t, rate)
    return recipe


def _ride(t: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    # slight vibrato around 250 Hz
    tone = swept_sine(lambda x: 250.0 + 10.0 * np.sin(50.0 * x), t)
    return tone * env_decay(t, 8.0) * 0.3


def _perc(t: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    tone = swept_sine(lambda x: 800.0 * np.exp(-20.0 * x), t)
    return tone * env_decay(t, 35.0) * 0.4


KITS: Dict[str, Dict[str, Recipe]] = {
    "electronic": {
        "kick": _kick,
        "snare": _snare,
        "hihat": _noise_hit(0.4, 50.0),
        "openhat": _noise_hit(0.3, 20.0),
        "clap": _noise_hit(0.3, 30.0),
        "crash": _noise_hit(0.4, 10.0),
        "ride": _ride,
        "perc": _perc,
    },
}


def kit_recipes(kit: str) -> Dict[str, Recipe]:
    """Recipe table for `kit`, falling back to the default kit."""
    recipes = KITS.get(kit)
    if recipes is None:
        logger.debug("Kit %r has no recipes of its own, using %r", kit, DEFAULT_KIT)
        recipes = KITS[DEFAULT_KIT]
    return recipes


def generate(timbre: str,
             sample_rate: int,
             duration_s: float = BUFFER_SECONDS,
             kit: str = DEFAULT_KIT,
             rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """
    Render one drum hit.

    Returns a mono float32 buffer of round(sample_rate * duration_s) samples in
    [-1, 1]. Noise-based timbres draw from `rng`; pass a seeded generator for
    reproducible output. Unknown timbres render as silence.
    """
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")
    t = time_axis(sample_rate, duration_s)
    recipe = kit_recipes(kit).get(timbre)
    if recipe is None:
        logger.warning("Unknown timbre %r, rendering silence", timbre)
        return np.zeros(len(t), dtype=np.float32)
    if rng is None:
        rng = np.random.default_rng()
    return hard_clip(recipe(t, rng)).astype(np.float32)


def render_kit(timbres: Mapping[str, str],
               sample_rate: int,
               kit: str = DEFAULT_KIT,
               rng: Optional[np.random.Generator] = None) -> Dict[str, np.ndarray]:
    """
    Render a read-only buffer for every entry of `timbres` (track name -> timbre id).
    The result is rebuilt wholesale on every kit change.
    """
    if rng is None:
        rng = np.random.default_rng()
    bank: Dict[str, np.ndarray] = {}
    for name, timbre in timbres.items():
        buf = generate(timbre, sample_rate, kit=kit, rng=rng)
        buf.setflags(write=False)
        bank[name] = buf
    logger.debug("Rendered %d sounds for kit %r at %d Hz", len(bank), kit, sample_rate)
    return bank
