"""
The fixed set of drum tracks: identity, synthesis recipe and per-track gain.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List

from .constants import DEFAULT_TRACK_GAIN
from .dsp import clamp_unit

# (track name, timbre id) in grid order
TRACK_LAYOUT: tuple[tuple[str, str], ...] = (
    ("Kick", "kick"),
    ("Snare", "snare"),
    ("Hi-Hat", "hihat"),
    ("Open Hat", "openhat"),
    ("Clap", "clap"),
    ("Crash", "crash"),
    ("Ride", "ride"),
    ("Perc", "perc"),
)

TRACK_NAMES: tuple[str, ...] = tuple(name for name, _ in TRACK_LAYOUT)


@dataclass
class Track:
    name: str
    timbre: str
    gain: float = DEFAULT_TRACK_GAIN  # 0..1

    def set_gain(self, v: float) -> None:
        self.gain = clamp_unit(v)


def default_tracks() -> List[Track]:
    return [Track(name, timbre) for name, timbre in TRACK_LAYOUT]
