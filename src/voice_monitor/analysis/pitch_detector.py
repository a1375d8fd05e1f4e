"""Autocorrelation pitch detection for short voice frames"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, Any, Optional

import numpy as np
from scipy.signal import find_peaks

from ..errors import ErrorKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PitchEstimate:
    """Result of a single pitch estimate.

    ``hz`` is set only when ``status`` is ``ErrorKind.NONE``; in that case it
    lies inside the detector's [min_hz, max_hz] range.
    """
    hz: Optional[float]
    status: ErrorKind = ErrorKind.NONE
    lag: Optional[int] = None

    @property
    def voiced(self) -> bool:
        return self.hz is not None

    @classmethod
    def unvoiced(cls, status: ErrorKind) -> 'PitchEstimate':
        return cls(hz=None, status=status)


class PitchDetector:
    """Fundamental-frequency estimator based on the time-domain autocorrelation

    Intentionally simple: the frame is DC-centred, its autocorrelation is
    computed for lags ``0..L-1`` (``L = min(max_lag, len(frame))``), and the
    tallest local maximum at lag >= ``min_lag`` is taken as the period.
    Lags shorter than ``min_lag`` are never searched so short-period
    aliasing cannot win.

    Example:
        >>> detector = PitchDetector(sample_rate=22050)
        >>> estimate = detector.estimate(frame)
        >>> if estimate.voiced:
        ...     print(f"{estimate.hz:.1f} Hz")

    Attributes:
        sample_rate (int): Sample rate of incoming frames
        min_hz (float): Lowest accepted pitch
        max_hz (float): Highest accepted pitch
        silence_threshold (float): Peak amplitude under which a frame is silent
        max_lag (int): Upper bound on the autocorrelation length
        min_lag (int): First lag searched for a peak
    """

    def __init__(self, sample_rate: int = 22050, config: Optional[Dict[str, Any]] = None):
        """Initialize PitchDetector

        Args:
            sample_rate: Sample rate of the frames to analyze
            config: Optional ``pitch`` configuration section

        Raises:
            ValueError: If the configuration is invalid
        """
        config = config or {}
        self.sample_rate = sample_rate
        self.min_hz = float(config.get('min_hz', 50.0))
        self.max_hz = float(config.get('max_hz', 500.0))
        self.silence_threshold = float(config.get('silence_threshold', 0.001))
        self.max_lag = int(config.get('max_lag', 512))
        self.min_lag = int(config.get('min_lag', 20))

        self._validate()

    def _validate(self) -> None:
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        if not 0 < self.min_hz < self.max_hz:
            raise ValueError(f"Invalid pitch range: [{self.min_hz}, {self.max_hz}]")
        if self.min_lag < 1 or self.max_lag <= self.min_lag:
            raise ValueError(f"Invalid lag search range: [{self.min_lag}, {self.max_lag})")
        if self.silence_threshold < 0:
            raise ValueError(f"silence_threshold must be non-negative, got {self.silence_threshold}")

    def in_range(self, hz: Optional[float]) -> bool:
        return hz is not None and self.min_hz <= hz <= self.max_hz

    def autocorrelation(self, frame: np.ndarray) -> np.ndarray:
        """Biased autocorrelation of a DC-removed frame for lags 0..L-1"""
        x = np.asarray(frame, dtype=np.float64)
        x = x - np.mean(x)
        n = len(x)
        length = min(self.max_lag, n)
        full = np.correlate(x, x, mode='full')
        return full[n - 1:n - 1 + length]

    def estimate(self, frame: np.ndarray) -> PitchEstimate:
        """Estimate the pitch of one frame.

        Never raises: silent frames, frames without a usable peak, results
        outside the accepted range and numeric faults all come back as an
        unvoiced estimate tagged with the matching ``ErrorKind``.

        Args:
            frame: 1-D array of samples in [-1, 1]

        Returns:
            PitchEstimate
        """
        try:
            x = np.asarray(frame, dtype=np.float64)
            if x.ndim != 1 or x.size == 0 or not np.all(np.isfinite(x)):
                return PitchEstimate.unvoiced(ErrorKind.NUMERIC_FAULT)

            x = x - np.mean(x)
            if np.max(np.abs(x)) < self.silence_threshold:
                return PitchEstimate.unvoiced(ErrorKind.SILENCE)

            with np.errstate(over='raise', invalid='raise'):
                corr = self.autocorrelation(x)

            if len(corr) <= self.min_lag:
                return PitchEstimate.unvoiced(ErrorKind.INSUFFICIENT_DATA)

            peaks, _ = find_peaks(corr[self.min_lag:])
            if len(peaks) == 0:
                return PitchEstimate.unvoiced(ErrorKind.NO_PEAK)

            best = peaks[np.argmax(corr[self.min_lag:][peaks])]
            lag = int(best) + self.min_lag
            if lag <= 0:
                return PitchEstimate.unvoiced(ErrorKind.NO_PEAK)

            pitch_hz = self.sample_rate / lag
            if not self.in_range(pitch_hz):
                return PitchEstimate(hz=None, status=ErrorKind.OUT_OF_RANGE, lag=lag)

            return PitchEstimate(hz=float(pitch_hz), lag=lag)

        except (FloatingPointError, ValueError, TypeError) as e:
            logger.debug(f"Pitch estimation failed: {e}")
            return PitchEstimate.unvoiced(ErrorKind.NUMERIC_FAULT)
