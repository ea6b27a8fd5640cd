"""
beatgrid Live – 8-track x 16-step drum machine with synthesized kit
Run:
    python src/main.py
"""

from __future__ import annotations
import tkinter as tk
from tkinter import simpledialog, ttk
from typing import Callable

from beatgrid.config import Settings
from beatgrid.constants import STEPS, TEMPO_MAX, TEMPO_MIN, TEMPO_NUDGE
from beatgrid.logging_utils import setup_logging
from beatgrid.machine import DrumMachine, MachineObserver
from beatgrid.synth_drums import KITS


class TkTimer:
    """Timer driven by the Tk event loop, so ticks run on the UI thread."""
    def __init__(self, widget: tk.Misc):
        self.widget = widget

    def call_every(self, interval_s: float, fn: Callable[[], None]) -> "_TkJob":
        if interval_s <= 0:
            raise ValueError(f"interval must be positive, got {interval_s}")
        return _TkJob(self.widget, int(round(interval_s * 1000.0)), fn)


class _TkJob:
    def __init__(self, widget: tk.Misc, ms: int, fn: Callable[[], None]):
        self.widget = widget; self.ms = max(1, ms); self.fn = fn
        self._after_id = self.widget.after(self.ms, self._fire)

    def _fire(self):
        self._after_id = self.widget.after(self.ms, self._fire)
        self.fn()

    def cancel(self) -> None:
        if self._after_id is not None:
            self.widget.after_cancel(self._after_id)
            self._after_id = None


class LiveUI(ttk.Frame, MachineObserver):

    # Colors
    STEP_ON_BG   = "#2D7DFF"
    STEP_OFF_BG  = "#F4F4F6"
    STEP_ON_FG   = "#FFFFFF"
    STEP_OFF_FG  = "#A0A4AB"
    STEP_PLAY_BG = "#FFB347"

    def __init__(self, master: tk.Tk, settings: Settings):
        super().__init__(master, padding=12)
        # create early so observer callbacks can safely use them
        self.var_status = tk.StringVar(value="")
        self.var_pos = tk.StringVar(value="Step: 1")
        self.highlighted: int | None = None

        master.title("beatgrid Live – Drum Machine")
        master.minsize(980, 460)

        self.machine = DrumMachine.from_settings(settings, TkTimer(self), observer=self)

        self._build_transport()
        self._build_grid()
        self._build_pattern_controls()
        self._build_status()
        self._refresh_pattern_select()

        self.grid(sticky="nsew")
        self.columnconfigure(0, weight=1)
        master.columnconfigure(0, weight=1); master.rowconfigure(0, weight=1)
        master.protocol("WM_DELETE_WINDOW", self._on_close)

    # ---------------- Transport ----------------
    def _build_transport(self):
        fx = ttk.Frame(self); fx.grid(row=0, column=0, sticky="ew", pady=(0, 8))

        ttk.Button(fx, text="Play", command=self.machine.play).grid(row=0, column=0, padx=(0, 4))
        ttk.Button(fx, text="Stop", command=self.machine.stop).grid(row=0, column=1, padx=(0, 12))

        ttk.Label(fx, text="BPM").grid(row=0, column=2, sticky="e")
        self.var_bpm = tk.IntVar(value=self.machine.tempo)
        sp = ttk.Spinbox(fx, from_=TEMPO_MIN, to=TEMPO_MAX, textvariable=self.var_bpm, width=5,
                         command=self._on_bpm_entry)
        sp.grid(row=0, column=3, padx=(6, 4)); sp.bind("<Return>", lambda e: self._on_bpm_entry())
        ttk.Button(fx, text=f"-{TEMPO_NUDGE}", width=4, command=lambda: self._nudge(-TEMPO_NUDGE)).grid(row=0, column=4)
        ttk.Button(fx, text=f"+{TEMPO_NUDGE}", width=4, command=lambda: self._nudge(TEMPO_NUDGE)).grid(row=0, column=5, padx=(0, 12))

        ttk.Label(fx, text="Kit").grid(row=0, column=6, sticky="e")
        self.var_kit = tk.StringVar(value=self.machine.kit)
        cmb = ttk.Combobox(fx, textvariable=self.var_kit, values=list(KITS.keys()), width=12, state="readonly")
        cmb.grid(row=0, column=7, padx=(6, 12))
        cmb.bind("<<ComboboxSelected>>", lambda e: self.machine.select_kit(self.var_kit.get()))

        ttk.Label(fx, text="Master").grid(row=0, column=8, sticky="e")
        s = ttk.Scale(fx, from_=0, to=100, orient="horizontal",
                      command=lambda v: self.machine.set_master_volume(float(v)))
        s.set(round(self.machine.master_gain * 100))
        s.grid(row=0, column=9, sticky="ew", padx=(6, 12))
        fx.columnconfigure(9, weight=1)

        ttk.Label(fx, textvariable=self.var_pos).grid(row=0, column=10, sticky="e")

    def _on_bpm_entry(self):
        try:
            bpm = int(self.var_bpm.get())
        except (tk.TclError, ValueError):
            bpm = self.machine.tempo
        self.var_bpm.set(self.machine.set_tempo(bpm))

    def _nudge(self, delta: int):
        self.var_bpm.set(self.machine.nudge_tempo(delta))

    # ---------------- Sequencer Grid ----------------
    def _step_paint(self, track: str, step: int):
        lbl = self.step_cells[track][step]
        on = self.machine.pattern.is_active(track, step)
        if on:
            lbl.configure(bg=self.STEP_ON_BG, fg=self.STEP_ON_FG)
        elif step == self.highlighted:
            lbl.configure(bg=self.STEP_PLAY_BG, fg=self.STEP_OFF_FG)
        else:
            lbl.configure(bg=self.STEP_OFF_BG, fg=self.STEP_OFF_FG)

    def _build_grid(self):
        g = ttk.LabelFrame(self, text="Sequencer (click to toggle steps)")
        g.grid(row=1, column=0, sticky="nsew")
        self.rowconfigure(1, weight=1)
        for c in range(2, 2 + STEPS):
            g.columnconfigure(c, weight=1, uniform="steps")

        self.step_cells: dict[str, list[tk.Label]] = {}
        for r, trk in enumerate(self.machine.tracks):
            ttk.Label(g, text=trk.name).grid(row=r, column=0, sticky="w", padx=10)
            vol = ttk.Scale(g, from_=0, to=100, orient="horizontal", length=90,
                            command=lambda v, n=trk.name: self.machine.set_track_volume(n, float(v)))
            vol.set(round(trk.gain * 100))
            vol.grid(row=r, column=1, padx=(0, 8))
            cells = []
            for c in range(STEPS):
                lbl = tk.Label(g, width=2, height=1, text=str(c + 1), bd=1, relief="solid", cursor="hand2")
                lbl.grid(row=r, column=c + 2, padx=2, pady=4, sticky="nsew")
                lbl.bind("<Button-1>", lambda e, n=trk.name, s=c: self.machine.toggle_step(n, s))
                cells.append(lbl)
            self.step_cells[trk.name] = cells
        self.on_pattern_changed()

    # ---------------- Pattern controls ----------------
    def _build_pattern_controls(self):
        pc = ttk.Frame(self); pc.grid(row=2, column=0, sticky="ew", pady=(8, 0))
        ttk.Button(pc, text="Clear", command=self.machine.clear).grid(row=0, column=0, padx=(0, 4))
        ttk.Button(pc, text="Random", command=self.machine.randomize).grid(row=0, column=1, padx=(0, 12))
        ttk.Button(pc, text="Save…", command=self._save).grid(row=0, column=2, padx=(0, 4))
        self.var_saved = tk.StringVar(value="")
        self.cmb_saved = ttk.Combobox(pc, textvariable=self.var_saved, width=28, state="readonly")
        self.cmb_saved.grid(row=0, column=3, padx=(0, 4))
        ttk.Button(pc, text="Load", command=self._load).grid(row=0, column=4)

    def _refresh_pattern_select(self):
        self._saved_labels = {f"{n} ({t}BPM)": n for n, t in self.machine.saved_patterns()}
        self.cmb_saved.configure(values=list(self._saved_labels))

    def _save(self):
        name = simpledialog.askstring("Save pattern", "Enter pattern name:", parent=self)
        if self.machine.save(name):
            self._refresh_pattern_select()

    def _load(self):
        name = self._saved_labels.get(self.var_saved.get())
        if self.machine.load(name):
            self.var_bpm.set(self.machine.tempo)
            self.var_kit.set(self.machine.kit)

    def _build_status(self):
        st = ttk.Frame(self); st.grid(row=3, column=0, sticky="ew", pady=(8, 0))
        ttk.Label(st, textvariable=self.var_status).grid(row=0, column=0, sticky="w")

    # ---------------- MachineObserver ----------------
    def on_step(self, step: int) -> None:
        prev, self.highlighted = self.highlighted, step
        for name in self.step_cells:
            if prev is not None:
                self._step_paint(name, prev)
            self._step_paint(name, step)
        self.var_pos.set(f"Step: {step + 1}")

    def on_stop(self) -> None:
        prev, self.highlighted = self.highlighted, None
        if prev is not None:
            for name in self.step_cells:
                self._step_paint(name, prev)
        self.var_pos.set("Step: 1")

    def on_pattern_changed(self) -> None:
        if not hasattr(self, "step_cells"):
            return
        for name, cells in self.step_cells.items():
            for s in range(len(cells)):
                self._step_paint(name, s)

    def on_status(self, message: str) -> None:
        self.var_status.set(message)

    def _on_close(self):
        self.machine.close()
        self.master.destroy()

# -----------------------------------------------------------------------------

def main():
    settings = Settings.from_env()
    setup_logging(settings.log_level)
    root = tk.Tk()
    try:
        style = ttk.Style()
        theme = "vista" if "vista" in style.theme_names() else "clam"
        style.theme_use(theme)
    except tk.TclError:
        pass
    root.rowconfigure(0, weight=1); root.columnconfigure(0, weight=1)
    app = LiveUI(root, settings); app.grid(sticky="nsew")
    root.mainloop()

if __name__ == "__main__":
    main()
