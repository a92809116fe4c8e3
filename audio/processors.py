"""
Audio preprocessing functionality for the speaking coach.
Turns raw input frames into frequency-domain energy readings for the volume meter.
"""

import logging
from typing import Optional

import numpy as np

from . import constants

logger = logging.getLogger(__name__)


class VolumeProcessor:
    """Spectrum-based energy meter, one reading per analysis window."""

    def __init__(
        self,
        fft_size: int = constants.FFT_SIZE,
        smoothing: float = constants.SMOOTHING_TIME_CONSTANT,
        min_decibels: float = constants.MIN_DECIBELS,
        max_decibels: float = constants.MAX_DECIBELS,
    ):
        """
        Initialize volume processor.

        Args:
            fft_size: Analysis window length in samples (power of two)
            smoothing: Weight of the previous spectrum in [0, 1)
            min_decibels: Level mapped to 0 on the byte scale
            max_decibels: Level mapped to 255 on the byte scale
        """
        if fft_size < 32 or fft_size & (fft_size - 1):
            raise ValueError(f"fft_size must be a power of two >= 32, got {fft_size}")
        if not 0.0 <= smoothing < 1.0:
            raise ValueError(f"smoothing must be in [0, 1), got {smoothing}")
        if max_decibels <= min_decibels:
            raise ValueError("max_decibels must be greater than min_decibels")

        self.fft_size = fft_size
        self.smoothing = smoothing
        self.min_decibels = min_decibels
        self.max_decibels = max_decibels
        self._window = np.blackman(fft_size)
        self._previous: Optional[np.ndarray] = None
        logger.debug(f"VolumeProcessor initialized with fft_size={fft_size}, smoothing={smoothing}")

    @property
    def bin_count(self) -> int:
        return self.fft_size // 2

    def frame_energy(self, frame: np.ndarray) -> float:
        """
        Compute the energy of the most recent analysis window.

        Args:
            frame: Mono audio signal in [-1, 1]; only the last ``fft_size``
                samples are used, shorter input is zero-padded at the front

        Returns:
            Mean spectral level on the 0-255 byte scale
        """
        samples = np.asarray(frame, dtype=np.float64).ravel()
        if samples.size >= self.fft_size:
            samples = samples[-self.fft_size:]
        else:
            samples = np.concatenate([np.zeros(self.fft_size - samples.size), samples])

        spectrum = np.abs(np.fft.rfft(samples * self._window))[: self.bin_count] / self.fft_size

        if self._previous is not None:
            spectrum = self.smoothing * self._previous + (1.0 - self.smoothing) * spectrum
        self._previous = spectrum

        decibels = 20.0 * np.log10(np.maximum(spectrum, 1e-12))
        scaled = (decibels - self.min_decibels) / (self.max_decibels - self.min_decibels)
        levels = np.clip(scaled, 0.0, 1.0) * constants.BYTE_SCALE_MAX
        return float(levels.mean())

    def reset(self) -> None:
        """Forget the smoothing state carried between windows."""
        self._previous = None
