"""
Runtime settings, read from BEATGRID_* environment variables with sane defaults.
"""

from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from .constants import DEFAULT_KIT, DEFAULT_MASTER_GAIN, DEFAULT_TEMPO, SR, TEMPO_MAX, TEMPO_MIN

logger = logging.getLogger(__name__)

ENV_PREFIX = "BEATGRID"


def default_store_path() -> Path:
    return Path.home() / ".beatgrid" / "patterns.json"


def clamp_tempo(bpm: int) -> int:
    return int(max(TEMPO_MIN, min(TEMPO_MAX, int(bpm))))


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(f"{ENV_PREFIX}_{name}")
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring %s_%s=%r (not an integer), using %d", ENV_PREFIX, name, raw, default)
        return default


@dataclass
class Settings:
    sample_rate: int = SR
    tempo_bpm: int = DEFAULT_TEMPO
    master_volume: int = int(round(DEFAULT_MASTER_GAIN * 100))  # 0..100
    kit: str = DEFAULT_KIT
    store_path: Path = field(default_factory=default_store_path)
    log_level: str = "INFO"
    blocksize: int = 512

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        s = cls()
        s.sample_rate = _env_int(env, "SAMPLE_RATE", s.sample_rate)
        if s.sample_rate <= 0:
            logger.warning("Sample rate must be positive, using %d", SR)
            s.sample_rate = SR
        s.tempo_bpm = clamp_tempo(_env_int(env, "TEMPO", s.tempo_bpm))
        s.master_volume = max(0, min(100, _env_int(env, "MASTER_VOLUME", s.master_volume)))
        s.blocksize = _env_int(env, "BLOCKSIZE", s.blocksize)
        s.kit = env.get(f"{ENV_PREFIX}_KIT") or s.kit
        store = env.get(f"{ENV_PREFIX}_STORE")
        if store:
            s.store_path = Path(store).expanduser()
        s.log_level = (env.get(f"{ENV_PREFIX}_LOG_LEVEL") or s.log_level).upper()
        return s
