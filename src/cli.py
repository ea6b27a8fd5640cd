"""
Minimal CLI entrypoint for bouncing patterns to WAV without opening the GUI.
"""

from __future__ import annotations
import argparse
import os
import numpy as np
import soundfile as sf

from beatgrid.config import Settings, clamp_tempo
from beatgrid.logging_utils import setup_logging
from beatgrid.pattern import Pattern
from beatgrid.pattern_store import JsonFileStore, PatternStore, SavedPattern
from beatgrid.render import render_pattern
from beatgrid.tracks import TRACK_NAMES


def main(argv: list[str] | None = None) -> int:
    settings = Settings.from_env()
    ap = argparse.ArgumentParser(description="Bounce a beatgrid drum pattern to a WAV file.")
    ap.add_argument("--pattern", type=str, default=None, help="Name of a saved pattern to render")
    ap.add_argument("--random", action="store_true", help="Render a freshly randomized pattern")
    ap.add_argument("--seed", type=int, default=None, help="Random seed (pattern and noise)")
    ap.add_argument("--bpm", type=int, default=None, help="Override tempo (60..200)")
    ap.add_argument("--kit", type=str, default=None, help="Override kit id")
    ap.add_argument("--bars", type=int, default=4, help="Number of 16-step bars")
    ap.add_argument("--volume", type=int, default=settings.master_volume, help="Master volume 0..100")
    ap.add_argument("--store", type=str, default=str(settings.store_path), help="Saved patterns file")
    ap.add_argument("--list", action="store_true", help="List saved patterns and exit")
    ap.add_argument("--delete", type=str, default=None, metavar="NAME", help="Delete a saved pattern and exit")
    ap.add_argument("--out", type=str, default="outputs/pattern.wav", help="Output WAV path")
    args = ap.parse_args(argv)

    setup_logging(settings.log_level)
    store = PatternStore(JsonFileStore(args.store))

    if args.list:
        for name, tempo in store.list():
            print(f"{name} ({tempo}BPM)")
        return 0

    if args.delete:
        if not store.delete(args.delete):
            print(f"[ERR] No saved pattern named {args.delete!r}")
            return 1
        print(f"[OK] Deleted: {args.delete}")
        return 0

    rng = np.random.default_rng(args.seed)
    if args.pattern:
        saved = store.load(args.pattern)
        if saved is None:
            print(f"[ERR] No saved pattern named {args.pattern!r}")
            return 1
    elif args.random:
        pat = Pattern(TRACK_NAMES)
        pat.randomize(rng)
        saved = SavedPattern(name="random", pattern=pat.to_dict(), tempo=settings.tempo_bpm, kit=settings.kit)
    else:
        ap.error("choose --pattern NAME, --random, --list or --delete NAME")

    saved = SavedPattern(
        name=saved.name,
        pattern=saved.pattern,
        tempo=clamp_tempo(args.bpm) if args.bpm is not None else saved.tempo,
        kit=args.kit or saved.kit,
        created_at=saved.created_at,
    )
    audio = render_pattern(saved, bars=args.bars, sample_rate=settings.sample_rate,
                           master_gain=max(0, min(100, args.volume)) / 100.0, rng=rng)

    out_dir = os.path.dirname(args.out) or "."
    os.makedirs(out_dir, exist_ok=True)
    sf.write(args.out, audio, settings.sample_rate, subtype="PCM_16")
    print(f"[OK] Wrote: {os.path.abspath(args.out)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
