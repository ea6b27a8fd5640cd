"""
DrumMachine: owns the tracks, pattern, clock, sound bank and sink, and exposes one
method per UI event. Front ends only call these methods and listen through a
MachineObserver; nothing here touches widgets.
"""

from __future__ import annotations
import logging
import threading
from typing import Dict, List, Optional, Tuple
import numpy as np

from .config import Settings, clamp_tempo
from .constants import DEFAULT_KIT, DEFAULT_MASTER_GAIN, DEFAULT_TEMPO, SR, TEMPO_NUDGE
from .dsp import clamp_unit
from .pattern import Pattern, load_rows
from .pattern_store import JsonFileStore, PatternStore
from .rt_audio import AudioUnavailableError, NullSink, open_sink
from .rt_sequencer import StepClock, Timer
from .synth_drums import render_kit
from .tracks import Track, default_tracks

logger = logging.getLogger(__name__)


class MachineObserver:
    """Display hooks. Subclass and override what the front end needs."""
    def on_step(self, step: int) -> None:
        pass

    def on_stop(self) -> None:
        pass

    def on_pattern_changed(self) -> None:
        pass

    def on_status(self, message: str) -> None:
        pass


class DrumMachine:
    """
    State lives here, not in globals. Every mutation and every tick takes the same
    re-entrant lock, so a threaded timer or audio callback can never see a
    half-applied edit.
    """
    def __init__(self,
                 sink,
                 store: PatternStore,
                 timer: Timer,
                 observer: Optional[MachineObserver] = None,
                 sample_rate: int = SR,
                 tempo_bpm: int = DEFAULT_TEMPO,
                 master_gain: float = DEFAULT_MASTER_GAIN,
                 kit: str = DEFAULT_KIT,
                 rng: Optional[np.random.Generator] = None):
        self._lock = threading.RLock()
        self.sink = sink
        self.store = store
        self.observer = observer or MachineObserver()
        self.sample_rate = int(sample_rate)
        self.rng = rng if rng is not None else np.random.default_rng()

        self.tracks: List[Track] = default_tracks()
        self._tracks_by_name: Dict[str, Track] = {t.name: t for t in self.tracks}
        self.pattern = Pattern(t.name for t in self.tracks)

        self.clock = StepClock(
            timer, self._on_step, tempo_bpm=clamp_tempo(tempo_bpm),
            on_start=self._resume_audio, on_stop=self.observer.on_stop
        )
        self.clock.state.master_gain = clamp_unit(master_gain)

        self.kit = kit
        self.sounds: Dict[str, np.ndarray] = {}
        self.load_sounds()

        if self.sink.available:
            self._status("Ready to play")
        else:
            self._status("Audio not supported on this system")

    @classmethod
    def from_settings(cls, settings: Settings, timer: Timer,
                      observer: Optional[MachineObserver] = None) -> "DrumMachine":
        """Wire up the real-time sink and the file-backed store."""
        return cls(
            sink=open_sink(settings.sample_rate, settings.blocksize),
            store=PatternStore(JsonFileStore(settings.store_path)),
            timer=timer,
            observer=observer,
            sample_rate=settings.sample_rate,
            tempo_bpm=settings.tempo_bpm,
            master_gain=settings.master_volume / 100.0,
            kit=settings.kit,
        )

    # ---------- read-only views ----------
    @property
    def tempo(self) -> int:
        return self.clock.state.tempo_bpm

    @property
    def master_gain(self) -> float:
        return self.clock.state.master_gain

    @property
    def current_step(self) -> int:
        return self.clock.current_step

    @property
    def is_running(self) -> bool:
        return self.clock.running

    def track(self, name: str) -> Optional[Track]:
        return self._tracks_by_name.get(name)

    # ---------- internals ----------
    def _status(self, message: str) -> None:
        logger.info(message)
        self.observer.on_status(message)

    def _resume_audio(self) -> None:
        try:
            self.sink.resume()
        except AudioUnavailableError as e:
            logger.error("Audio output failed, continuing silently: %s", e)
            self.sink = NullSink()
            self._status("Audio not supported on this system")

    def _on_step(self, step: int) -> None:
        with self._lock:
            master = self.clock.state.master_gain
            for name in self.pattern.active_tracks(step):
                buf = self.sounds.get(name)
                if buf is None:
                    continue
                self.sink.play(buf, self._tracks_by_name[name].gain * master)
            self.observer.on_step(step)

    def load_sounds(self) -> None:
        """Re-render every track's buffer for the current kit."""
        timbres = {t.name: t.timbre for t in self.tracks}
        sounds = render_kit(timbres, self.sample_rate, kit=self.kit, rng=self.rng)
        with self._lock:
            self.sounds = sounds

    # ---------- transport ----------
    def play(self) -> None:
        with self._lock:
            if self.clock.running:
                return
            self.clock.start()
        self._status("Playing...")

    def stop(self) -> None:
        with self._lock:
            self.clock.stop()
        self._status("Stopped")

    def set_tempo(self, bpm: int) -> int:
        with self._lock:
            self.clock.set_tempo(clamp_tempo(bpm))
        self._status(f"Tempo set to {self.tempo} BPM")
        return self.tempo

    def nudge_tempo(self, delta: int = TEMPO_NUDGE) -> int:
        with self._lock:
            self.clock.set_tempo(clamp_tempo(self.tempo + int(delta)))
        word = "increased" if delta >= 0 else "decreased"
        self._status(f"Tempo {word} to {self.tempo} BPM")
        return self.tempo

    # ---------- sound ----------
    def select_kit(self, kit: str) -> None:
        self.kit = kit
        self.load_sounds()
        self._status(f"Switched to {kit} kit")

    def set_master_volume(self, percent: float) -> None:
        """Slider value 0..100."""
        with self._lock:
            self.clock.state.master_gain = clamp_unit(float(percent) / 100.0)
        self._status(f"Master volume: {int(round(self.master_gain * 100))}%")

    def set_track_volume(self, name: str, percent: float) -> None:
        trk = self._tracks_by_name.get(name)
        if trk is None:
            logger.warning("Volume change on unknown track %r ignored", name)
            return
        with self._lock:
            trk.set_gain(float(percent) / 100.0)

    # ---------- pattern ----------
    def toggle_step(self, name: str, step: int) -> bool:
        with self._lock:
            value = self.pattern.toggle(name, step)
        self.observer.on_pattern_changed()
        return value

    def clear(self) -> None:
        with self._lock:
            self.pattern.clear()
        self.observer.on_pattern_changed()
        self._status("Pattern cleared")

    def randomize(self) -> None:
        with self._lock:
            self.pattern.randomize(self.rng)
        self.observer.on_pattern_changed()
        self._status("Random pattern generated")

    def save(self, name: Optional[str]) -> bool:
        """Store the current pattern, tempo and kit. Blank names are ignored."""
        with self._lock:
            snapshot = self.pattern.to_dict()
            record = self.store.save(name or "", snapshot, self.tempo, self.kit)
        if record is None:
            return False
        self._status(f'Pattern "{record.name}" saved')
        return True

    def load(self, name: Optional[str]) -> bool:
        """Recall a saved pattern. Unknown names change nothing."""
        if not name:
            return False
        record = self.store.load(name)
        if record is None:
            self._status(f'Pattern "{name}" not found')
            return False
        with self._lock:
            load_rows(self.pattern, record.pattern)
            self.clock.set_tempo(clamp_tempo(record.tempo))
            kit_changed = record.kit != self.kit
            self.kit = record.kit
        if kit_changed:
            self.load_sounds()
        self.observer.on_pattern_changed()
        self._status(f'Pattern "{record.name}" loaded')
        return True

    def saved_patterns(self) -> List[Tuple[str, int]]:
        return self.store.list()

    def close(self) -> None:
        self.stop()
        self.sink.close()
