"""
16-step on/off pattern per track.
- Every track always holds exactly `steps` booleans.
- Bulk edits (clear, randomize, load) replace rows wholesale.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional
import numpy as np

from .constants import RANDOM_DENSITY, STEPS

logger = logging.getLogger(__name__)


class Pattern:
    """Track name -> boolean step row. Track order is the insertion order."""

    def __init__(self, track_names: Iterable[str], steps: int = STEPS):
        self.steps = int(steps)
        self.rows: Dict[str, np.ndarray] = {
            name: np.zeros(self.steps, dtype=bool) for name in track_names
        }

    @property
    def track_names(self) -> List[str]:
        return list(self.rows)

    def _check_step(self, step: int) -> int:
        s = int(step)
        if not 0 <= s < self.steps:
            raise IndexError(f"step {step} out of range [0, {self.steps})")
        return s

    # ---------- single steps ----------
    def is_active(self, track: str, step: int) -> bool:
        return bool(self.rows[track][self._check_step(step)])

    def toggle(self, track: str, step: int) -> bool:
        """Flip one step and return its new value. Unknown tracks are ignored."""
        s = self._check_step(step)
        if track not in self.rows:
            logger.warning("Toggle on unknown track %r ignored", track)
            return False
        self.rows[track][s] = not self.rows[track][s]
        return bool(self.rows[track][s])

    def set_step(self, track: str, step: int, on: bool) -> None:
        s = self._check_step(step)
        if track not in self.rows:
            logger.warning("Set on unknown track %r ignored", track)
            return
        self.rows[track][s] = bool(on)

    def active_tracks(self, step: int) -> List[str]:
        """Names of tracks whose `step` is on, in track order."""
        s = self._check_step(step)
        return [name for name, row in self.rows.items() if row[s]]

    # ---------- bulk ----------
    def set_row(self, track: str, values: Iterable[Any]) -> None:
        """Replace a row, truncating or zero-padding to `steps` entries."""
        if track not in self.rows:
            return
        row = np.zeros(self.steps, dtype=bool)
        vals = [bool(v) for v in values][: self.steps]
        row[: len(vals)] = vals
        self.rows[track] = row

    def clear(self) -> None:
        for name in self.rows:
            self.rows[name] = np.zeros(self.steps, dtype=bool)

    def randomize(self, rng: np.random.Generator, density: float = RANDOM_DENSITY) -> None:
        """Each step independently on with probability `density`."""
        for name in self.rows:
            self.rows[name] = rng.random(self.steps) < density

    def active_count(self) -> int:
        return int(sum(int(row.sum()) for row in self.rows.values()))

    # ---------- serialization ----------
    def to_dict(self) -> Dict[str, List[bool]]:
        return {name: [bool(v) for v in row] for name, row in self.rows.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], track_names: Iterable[str],
                  steps: int = STEPS) -> "Pattern":
        """
        Build a pattern for `track_names` from a snapshot. Tracks missing from the
        snapshot stay silent; unknown tracks and non-list rows are dropped.
        """
        pat = cls(track_names, steps=steps)
        for name, values in data.items():
            if name in pat.rows and isinstance(values, (list, tuple)):
                pat.set_row(name, values)
        return pat

    def copy(self) -> "Pattern":
        other = Pattern(self.rows, steps=self.steps)
        for name, row in self.rows.items():
            other.rows[name] = row.copy()
        return other

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Pattern):
            return NotImplemented
        return (self.track_names == other.track_names
                and all(np.array_equal(self.rows[n], other.rows[n]) for n in self.rows))

    def __repr__(self) -> str:
        return f"Pattern(tracks={len(self.rows)}, steps={self.steps}, active={self.active_count()})"


def load_rows(pattern: Pattern, snapshot: Optional[Mapping[str, Any]]) -> None:
    """Overwrite every row of `pattern` in place from a snapshot (missing rows cleared)."""
    fresh = Pattern.from_dict(snapshot or {}, pattern.track_names, steps=pattern.steps)
    pattern.rows = fresh.rows
