"""Application-wide constants for the pitch-to-key pipeline.

The values in this module configure the audio capture, the pitch
estimator and the key repeat policy.  Centralising them avoids magic
numbers spread throughout the code base and keeps the tunable values in
one place.  ``HOLD_THRESHOLD`` and ``REPEAT_INTERVAL`` are fixed policy
and are deliberately not exposed through the configuration file.
"""

from __future__ import annotations

from typing import Optional

# ─── Audio configuration ────────────────────────────────────────────────────

# Sampling frequency used when the input device does not report one.
SAMPLE_RATE: int = 44_100

# Number of samples analysed as one unit.  2048 samples at 44.1 kHz is
# roughly 46 ms, long enough to resolve the lowest mapped note (100 Hz).
WINDOW_SIZE: int = 2048

# Frames requested per PortAudio callback.  Zero lets the host pick.
BLOCK_SIZE: int = 0

# ─── Pitch estimation ─────────────────────────────────────────────────────

# Minimum power (sum of squared samples) a window must carry before the
# estimator looks for a pitch at all.
POWER_THRESHOLD: float = 0.7

# Minimum clarity (detector confidence, 0–1) for an estimate to count.
CLARITY_THRESHOLD: float = 0.2

# Aubio detection method.  ``"fft"`` selects the built-in FFT peak finder.
DETECTION_METHOD: str = "yinfft"

# ─── Key repeat policy ────────────────────────────────────────────────────

# Seconds a note must be sustained before auto-repeat starts.
HOLD_THRESHOLD: float = 0.250

# Seconds between repeated presses once auto-repeat is active.
REPEAT_INTERVAL: float = 0.100

# ─── Analysis loop ────────────────────────────────────────────────────────

# Seconds the analysis loop sleeps between buffer polls.
POLL_INTERVAL: float = 0.050

# Optional cap on queued samples.  ``None`` leaves the backlog unbounded.
MAX_BACKLOG: Optional[int] = None

__all__ = [
    "SAMPLE_RATE",
    "WINDOW_SIZE",
    "BLOCK_SIZE",
    "POWER_THRESHOLD",
    "CLARITY_THRESHOLD",
    "DETECTION_METHOD",
    "HOLD_THRESHOLD",
    "REPEAT_INTERVAL",
    "POLL_INTERVAL",
    "MAX_BACKLOG",
]
