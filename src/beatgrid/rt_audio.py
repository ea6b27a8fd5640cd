"""
Audio output sinks.
- VoiceMixer sums any number of overlapping one-shot voices, each at its own gain.
- AudioSink pulls the mix from a sounddevice output stream (starts suspended).
- NullSink is the silent fallback when no audio device can be opened.
- OfflineSink renders the mix on demand, for bouncing to file and for tests.
"""

from __future__ import annotations
import logging
import threading
from typing import List, Tuple
import numpy as np

from .constants import SR

try:
    import sounddevice as sd
except OSError:  # PortAudio shared library missing
    sd = None

logger = logging.getLogger(__name__)


class AudioUnavailableError(RuntimeError):
    """No usable audio output on this machine."""


class VoiceMixer:
    """Fire-and-forget voices; a retrigger never cuts off an earlier instance."""
    def __init__(self):
        self._lock = threading.Lock()
        self.active: List[dict] = []

    def trigger(self, buf: np.ndarray, gain: float) -> None:
        with self._lock:
            self.active.append({"buf": buf, "pos": 0, "gain": float(gain)})

    @property
    def voice_count(self) -> int:
        with self._lock:
            return len(self.active)

    def render(self, frames: int) -> np.ndarray:
        """Mix the next `frames` samples (mono) and drop finished voices."""
        out = np.zeros(int(frames), dtype=np.float32)
        with self._lock:
            rm = []
            for i, vce in enumerate(self.active):
                buf, pos = vce["buf"], vce["pos"]
                take = min(len(buf) - pos, frames)
                if take > 0:
                    out[:take] += buf[pos:pos + take] * vce["gain"]
                    vce["pos"] += take
                if vce["pos"] >= len(buf):
                    rm.append(i)
            for i in reversed(rm):
                self.active.pop(i)
        return np.clip(out, -1.0, 1.0)


class AudioSink:
    """Real-time output: one stereo stream fed by a VoiceMixer."""
    available = True

    def __init__(self, sample_rate: int = SR, blocksize: int = 512):
        if sd is None:
            raise AudioUnavailableError("sounddevice could not load the PortAudio library")
        self.sample_rate = int(sample_rate)
        self.mixer = VoiceMixer()

        def _cb(outdata, frames, time, status):
            if status:
                logger.debug("Output stream status: %s", status)
            block = self.mixer.render(frames)
            outdata[:] = np.stack([block, block], axis=1)

        try:
            self._stream = sd.OutputStream(
                samplerate=self.sample_rate, channels=2, dtype="float32",
                callback=_cb, blocksize=int(blocksize)
            )
        except (sd.PortAudioError, OSError, ValueError) as e:
            raise AudioUnavailableError(f"Could not open output stream: {e}") from e

    @property
    def suspended(self) -> bool:
        return self._stream is None or not self._stream.active

    def resume(self) -> None:
        """Start the stream if it is not already running."""
        if self._stream is not None and not self._stream.active:
            try:
                self._stream.start()
            except sd.PortAudioError as e:
                raise AudioUnavailableError(f"Could not start output stream: {e}") from e
            logger.info("Audio output resumed at %d Hz", self.sample_rate)

    def play(self, buf: np.ndarray, gain: float) -> None:
        if self.suspended:
            return
        self.mixer.trigger(buf, gain)

    def close(self) -> None:
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None


class NullSink:
    """Non-audible mode: sequencing carries on, triggers do nothing."""
    available = False
    suspended = False

    def resume(self) -> None:
        pass

    def play(self, buf: np.ndarray, gain: float) -> None:
        pass

    def close(self) -> None:
        pass


class OfflineSink:
    """
    Mixes triggers into buffers pulled on demand (no device, no real time).
    With `record=True` every (buffer, gain) trigger is also kept in `triggers`.
    """
    available = True
    suspended = False

    def __init__(self, sample_rate: int = SR, record: bool = False):
        self.sample_rate = int(sample_rate)
        self.mixer = VoiceMixer()
        self.record = bool(record)
        self.triggers: List[Tuple[np.ndarray, float]] = []

    def resume(self) -> None:
        pass

    def play(self, buf: np.ndarray, gain: float) -> None:
        if self.record:
            self.triggers.append((buf, float(gain)))
        self.mixer.trigger(buf, gain)

    def pull(self, frames: int) -> np.ndarray:
        return self.mixer.render(frames)

    def drain(self) -> np.ndarray:
        """Render whatever is still ringing until every voice has finished."""
        remaining = 0
        for vce in self.mixer.active:
            remaining = max(remaining, len(vce["buf"]) - vce["pos"])
        return self.pull(remaining)

    def close(self) -> None:
        pass


def open_sink(sample_rate: int = SR, blocksize: int = 512):
    """Open the real-time sink, falling back to NullSink when audio is unavailable."""
    try:
        return AudioSink(sample_rate=sample_rate, blocksize=blocksize)
    except AudioUnavailableError as e:
        logger.error("Audio not available, continuing silently: %s", e)
        return NullSink()
