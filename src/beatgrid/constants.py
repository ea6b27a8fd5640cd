"""
Global constants shared by the synthesis, sequencing and persistence layers.
"""

SR: int = 44_100  # Default sample rate (Hz)
BUFFER_SECONDS: float = 0.5  # Length of every rendered drum hit

STEPS: int = 16  # Sixteenth-note steps per bar
TEMPO_MIN: int = 60
TEMPO_MAX: int = 200
TEMPO_NUDGE: int = 5
DEFAULT_TEMPO: int = 120

DEFAULT_TRACK_GAIN: float = 0.8
DEFAULT_MASTER_GAIN: float = 0.7
RANDOM_DENSITY: float = 0.3  # Probability of a step being active after randomize

DEFAULT_KIT: str = "electronic"
STORAGE_KEY: str = "drumPatterns"  # Key holding the saved-pattern list
