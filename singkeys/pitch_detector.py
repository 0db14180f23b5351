"""
Pitch estimation for a single analysis window.

:class:`PitchEstimator` wraps an :mod:`aubio` pitch detector behind a
small callable interface: give it a window of mono samples and it
returns a :class:`PitchEstimate` or ``None`` when no pitch was detected
confidently.  Two gates decide confidence:

* the window's power (sum of squared samples) must reach
  ``power_threshold``, otherwise the window is treated as silence and
  the detector is not consulted,
* the detector's confidence, reported as ``clarity``, must reach
  ``clarity_threshold``.

When ``method`` is ``"fft"`` a Hann-windowed FFT peak finder is used
instead of aubio.  If aubio cannot be configured for the requested
method the estimator logs a warning and falls back to the FFT finder.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .constants import (
    CLARITY_THRESHOLD,
    DETECTION_METHOD,
    POWER_THRESHOLD,
    SAMPLE_RATE,
    WINDOW_SIZE,
)

logger = logging.getLogger(__name__)

# Band searched by the FFT peak finder.
FFT_MIN_FREQ: float = 50.0
FFT_MAX_FREQ: float = 2000.0


@dataclass(frozen=True)
class PitchEstimate:
    """Fundamental frequency (Hz) and clarity (0–1) of one window."""

    frequency: float
    clarity: float


def window_power(samples: np.ndarray) -> float:
    """Return the sum of squared samples."""
    return float(np.sum(np.square(samples, dtype=np.float64)))


def detect_pitch_fft(samples: np.ndarray, sample_rate: int) -> tuple[float, float]:
    """Estimate the dominant frequency of ``samples`` with an FFT.

    The input is windowed with a Hann window to reduce spectral leakage
    before performing a real FFT.  The power spectrum is scanned for the
    highest peak between 50 Hz and 2000 Hz.

    Returns:
        ``(frequency, clarity)`` where ``clarity`` is the peak bin's share
        of the power in the searched band.  ``(0.0, 0.0)`` if no peak is
        found.
    """
    if samples.size == 0:
        return 0.0, 0.0
    window = np.hanning(len(samples))
    power = np.abs(np.fft.rfft(samples * window)) ** 2
    freqs = np.fft.rfftfreq(len(samples), d=1.0 / sample_rate)
    mask = (freqs >= FFT_MIN_FREQ) & (freqs <= FFT_MAX_FREQ)
    if not np.any(mask):
        return 0.0, 0.0
    band = power[mask]
    total = float(np.sum(band))
    if total <= 0.0:
        return 0.0, 0.0
    idx = int(np.argmax(band))
    return float(freqs[mask][idx]), float(band[idx] / total)


class PitchEstimator:
    """Callable pitch estimator for fixed-size windows.

    Args:
        sample_rate: Sampling frequency of the windows in hertz.
        window_size: Number of samples per window.  Aubio requires every
            call to receive exactly this many samples.
        power_threshold: Minimum window power before detection runs.
        clarity_threshold: Minimum clarity for an estimate to be kept.
        method: Aubio detection method (``"yinfft"``, ``"yin"``,
            ``"mcomb"``, ...) or ``"fft"``.
    """

    def __init__(
        self,
        sample_rate: int = SAMPLE_RATE,
        window_size: int = WINDOW_SIZE,
        power_threshold: float = POWER_THRESHOLD,
        clarity_threshold: float = CLARITY_THRESHOLD,
        method: str = DETECTION_METHOD,
    ) -> None:
        self.sample_rate = sample_rate
        self.window_size = window_size
        self.power_threshold = power_threshold
        self.clarity_threshold = clarity_threshold
        self.method = (method or DETECTION_METHOD).lower().strip()
        self._pitch_o = None
        if self.method != "fft":
            try:
                import aubio  # type: ignore

                self._pitch_o = aubio.pitch(
                    method=self.method,
                    buf_size=self.window_size,
                    hop_size=self.window_size,
                    samplerate=self.sample_rate,
                )
                self._pitch_o.set_unit("Hz")
                # Power gating is done here, not by aubio
                self._pitch_o.set_silence(-90)
            except Exception as e:
                logger.warning(
                    "Could not configure aubio pitch method '%s' (%s), "
                    "falling back to FFT peak detection",
                    self.method,
                    e,
                )
                self._pitch_o = None
                self.method = "fft"

    def _detect(self, window: np.ndarray) -> tuple[float, float]:
        if self._pitch_o is None:
            return detect_pitch_fft(window, self.sample_rate)
        samples = np.ascontiguousarray(window, dtype=np.float32)
        freq = float(self._pitch_o(samples)[0])
        clarity = float(self._pitch_o.get_confidence())
        return freq, clarity

    def __call__(self, window: np.ndarray) -> Optional[PitchEstimate]:
        """Estimate the pitch of ``window``.

        Returns:
            A :class:`PitchEstimate`, or ``None`` if the window is too
            quiet, the detector found nothing, or its clarity is below
            the threshold.
        """
        if len(window) != self.window_size:
            raise ValueError(
                f"expected a window of {self.window_size} samples, got {len(window)}"
            )
        if window_power(window) < self.power_threshold:
            return None
        freq, clarity = self._detect(window)
        if freq <= 0.0 or clarity < self.clarity_threshold:
            return None
        return PitchEstimate(frequency=freq, clarity=clarity)


__all__ = [
    "PitchEstimate",
    "PitchEstimator",
    "detect_pitch_fft",
    "window_power",
]
