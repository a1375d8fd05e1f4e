"""FFT magnitude spectrum and spectrogram columns"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, Any, Optional

import numpy as np

from ..errors import ErrorKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpectrumResult:
    """Magnitudes (dB or normalized) with an outcome tag.

    On failure ``values`` holds the neutral zero spectrum of the expected
    length and ``error`` says why.
    """
    values: np.ndarray
    error: ErrorKind = ErrorKind.NONE

    @property
    def ok(self) -> bool:
        return self.error == ErrorKind.NONE


class SpectralAnalyzer:
    """Spectrum display data and scrolling-spectrogram columns

    Two views of a frame are produced:

    - ``spectrum``: ``20*log10(|FFT(frame, N)| + eps)`` over the
      non-negative-frequency half (N/2 bins), used for the live spectrum plot.
    - ``spectrogram_column``: a ``column_fft_size``-point spectrum, first half
      in dB, shifted so its minimum is 0 and scaled so its maximum is
      ``column_scale`` (no scaling when the shifted maximum is 0), truncated
      to ``column_bins`` bins.

    Attributes:
        sample_rate (int): Sample rate of incoming frames
        spectrum_fft_size (int): Default FFT size for ``spectrum``
        column_fft_size (int): FFT size for spectrogram columns
        column_bins (int): Bins kept per spectrogram column
        column_scale (float): Value the loudest bin is scaled to
    """

    def __init__(self, sample_rate: int = 22050, config: Optional[Dict[str, Any]] = None):
        config = config or {}
        self.sample_rate = sample_rate
        self.spectrum_fft_size = int(config.get('spectrum_fft_size', 512))
        self.column_fft_size = int(config.get('column_fft_size', 256))
        self.column_bins = int(config.get('column_bins', 64))
        self.column_scale = float(config.get('column_scale', 64.0))
        self.eps = float(np.finfo(np.float64).eps)

        if self.spectrum_fft_size < 2 or self.column_fft_size < 2:
            raise ValueError("FFT sizes must be at least 2")
        if not 0 < self.column_bins <= self.column_fft_size // 2:
            raise ValueError(
                f"column_bins must be in (0, {self.column_fft_size // 2}], got {self.column_bins}"
            )

    def frequencies(self, n_fft: Optional[int] = None) -> np.ndarray:
        """Frequency axis (Hz) matching ``spectrum(frame, n_fft)``"""
        n_fft = n_fft or self.spectrum_fft_size
        return np.arange(n_fft // 2) * self.sample_rate / n_fft

    def _magnitude_db(self, frame: np.ndarray, n_fft: int) -> np.ndarray:
        x = np.asarray(frame, dtype=np.float64)
        if x.ndim != 1 or not np.all(np.isfinite(x)):
            raise FloatingPointError("frame contains non-finite samples")
        magnitude = np.abs(np.fft.fft(x, n=n_fft))[:n_fft // 2]
        return 20.0 * np.log10(magnitude + self.eps)

    def spectrum(self, frame: np.ndarray, n_fft: Optional[int] = None) -> SpectrumResult:
        n_fft = n_fft or self.spectrum_fft_size
        try:
            return SpectrumResult(self._magnitude_db(frame, n_fft))
        except (FloatingPointError, ValueError) as e:
            logger.debug(f"Spectrum computation failed: {e}")
            return SpectrumResult(np.zeros(n_fft // 2), ErrorKind.NUMERIC_FAULT)

    def spectrogram_column(self, frame: np.ndarray) -> SpectrumResult:
        try:
            column = self._magnitude_db(frame, self.column_fft_size)
            column = column - np.min(column)
            peak = np.max(column)
            if peak > 0:
                column = column / peak * self.column_scale
            return SpectrumResult(column[:self.column_bins])
        except (FloatingPointError, ValueError) as e:
            logger.debug(f"Spectrogram column failed: {e}")
            return SpectrumResult(np.zeros(self.column_bins), ErrorKind.NUMERIC_FAULT)
