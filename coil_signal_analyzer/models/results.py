from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from coil_signal_analyzer.models.config import AnalysisConfig


@dataclass(frozen=True)
class StackedWaveform:
    """One averaged cycle resampled to the analysis resolution.

    Attributes
    ----------
    values:
        Array of shape ``(n_samples,)``.
    strategy:
        Name of the stacking strategy that produced it
        (``"stack-and-resample"``, ``"first-cycle-resample"``, ``"raw-resample"``).
    n_cycles:
        Number of cycles averaged (0 when no stacking took place).
    samples_per_cycle:
        ``floor(sample_rate / base_frequency)`` used for cycle extraction.
    """

    values: np.ndarray
    strategy: str
    n_cycles: int
    samples_per_cycle: int
    warnings: Tuple[str, ...] = ()

    def __len__(self) -> int:
        return int(self.values.size)


@dataclass(frozen=True)
class FIRResult:
    """Container for one FIR design request.

    All four arrays have the same length (the analysis resolution).

    Attributes
    ----------
    coefficients:
        Least-squares FIR coefficients.
    filtered:
        ``coefficients`` applied to ``stacked`` by circular convolution.
    stacked:
        Averaged, resampled measured cycle.
    reference:
        Two-level square reference the filter was designed against.
    """

    coefficients: np.ndarray
    filtered: np.ndarray
    stacked: np.ndarray
    reference: np.ndarray

    config: Optional[AnalysisConfig] = None
    strategy: str = ""
    n_cycles: int = 0
    warnings: Tuple[str, ...] = ()

    @property
    def rms_deviation(self) -> float:
        """RMS of ``filtered - reference``."""
        return float(np.sqrt(np.mean((self.filtered - self.reference) ** 2)))


@dataclass(frozen=True)
class SpectrumResult:
    """Single-sided dB magnitude spectrum.

    Attributes
    ----------
    frequencies:
        Hz, ascending, length ``fft_size // 2 + 1``; bin 0 is 0 Hz, last bin is Nyquist.
    magnitudes:
        dB, same length; ``MIN_MAGNITUDE_DB`` where the linear magnitude is <= 0.
    harmonics:
        Array of shape ``(n_peaks, 2)`` with ``(frequency, magnitude)`` rows sorted
        by descending magnitude. Empty unless peak extraction was requested.
    """

    frequencies: np.ndarray
    magnitudes: np.ndarray
    sample_rate_hz: float
    harmonics: np.ndarray = field(default_factory=lambda: np.empty((0, 2), dtype=np.float64))
    fft_size: int = 0
    n_input: int = 0

    @property
    def n_bins(self) -> int:
        return int(self.frequencies.size)


@dataclass(frozen=True)
class DownsampledSeries:
    """(time, value) series reduced for display."""

    times: np.ndarray
    values: np.ndarray
    bin_size: int = 1
    n_input: int = 0

    def __len__(self) -> int:
        return int(self.times.size)
