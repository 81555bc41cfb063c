"""Windowed FFT magnitude spectrum of a recording.

Provides a single-sided dB spectrum on a fixed transform size and an
optional harmonic peak scan.

Processing chain
----------------
1) Centre the input on its mean; remember ``scale = max|x - mean|``.
2) Zero-pad / truncate to ``fft_size`` and apply a Blackman window over the
   whole transform length (``0.42 - 0.5 cos(2 pi t) + 0.08 cos(4 pi t)``,
   ``t = i / (fft_size - 1)``).
3) Real FFT, bins ``0..fft_size/2``.
4) ``|X| * (fft_size / sum(window)) / fft_size``, doubled except at DC and Nyquist.
5) ``20 log10(magnitude * scale)``; non-positive values map to ``MIN_MAGNITUDE_DB``.

Functions
---------
blackman_window
    Window coefficients over ``n`` points.
compute_spectrum
    Steps 1-5, returns :class:`~coil_signal_analyzer.models.results.SpectrumResult`.
find_harmonic_peaks
    Local-maximum scan restricted to a band and a threshold below the maximum.
"""

from __future__ import annotations

import logging
from typing import Tuple

import numpy as np

from coil_signal_analyzer.errors import EmptyInputError
from coil_signal_analyzer.models.config import DEFAULT_FFT_SIZE, MIN_MAGNITUDE_DB
from coil_signal_analyzer.models.results import SpectrumResult

logger = logging.getLogger(__name__)

PEAK_SEARCH_FLOOR_HZ = 50.0
PEAK_BAND_HZ: Tuple[float, float] = (500.0, 25000.0)
PEAK_THRESHOLD_DB = 60.0
MAX_PEAKS = 10


def blackman_window(n: int) -> np.ndarray:
    """Blackman coefficients (0.42, 0.5, 0.08) over ``t = i / (n - 1)``."""
    n = int(n)
    if n < 2:
        return np.ones(max(n, 0), dtype=np.float64)
    t = np.arange(n, dtype=np.float64) / float(n - 1)
    return 0.42 - 0.5 * np.cos(2.0 * np.pi * t) + 0.08 * np.cos(4.0 * np.pi * t)


def _to_db(linear: np.ndarray) -> np.ndarray:
    out = np.full(linear.shape, MIN_MAGNITUDE_DB, dtype=np.float64)
    pos = linear > 0.0
    out[pos] = 20.0 * np.log10(linear[pos])
    return out


def compute_spectrum(
    data: np.ndarray,
    sample_rate_hz: float,
    *,
    fft_size: int = DEFAULT_FFT_SIZE,
    find_harmonics: bool = False,
) -> SpectrumResult:
    """Single-sided dB magnitude spectrum of ``data``.

    Parameters
    ----------
    data:
        1D samples. Longer inputs are truncated to ``fft_size`` and shorter
        ones zero-padded.
    sample_rate_hz:
        Sample rate; the last bin maps to ``sample_rate_hz / 2``.
    fft_size:
        Transform length (even, >= 2).
    find_harmonics:
        Populate ``SpectrumResult.harmonics`` with :func:`find_harmonic_peaks`.

    Raises
    ------
    EmptyInputError
        If ``data`` has no samples.
    """
    x = np.asarray(data, dtype=np.float64).ravel()
    if x.size == 0:
        raise EmptyInputError("empty input data")
    n_fft = int(fft_size)
    if n_fft < 2 or n_fft % 2:
        raise ValueError(f"fft_size must be even and >= 2, got {fft_size}")
    fs = float(sample_rate_hz)
    if not (np.isfinite(fs) and fs > 0):
        raise ValueError(f"sample_rate_hz must be > 0, got {sample_rate_hz}")

    if x.size > n_fft:
        logger.debug("truncating %d samples to fft_size=%d", x.size, n_fft)

    centered = x - float(np.mean(x))
    scale = float(np.max(np.abs(centered)))

    frame = np.zeros(n_fft, dtype=np.float64)
    n_use = min(n_fft, centered.size)
    frame[:n_use] = centered[:n_use]

    window = blackman_window(n_fft)
    frame *= window
    window_sum = float(np.sum(window))

    coeffs = np.fft.rfft(frame)
    frequencies = np.fft.rfftfreq(n_fft, d=1.0 / fs)

    magnitude = np.abs(coeffs) * (n_fft / window_sum) / float(n_fft)
    magnitude[1:-1] *= 2.0
    magnitudes = _to_db(magnitude * scale)

    harmonics = np.empty((0, 2), dtype=np.float64)
    if find_harmonics:
        harmonics = find_harmonic_peaks(frequencies, magnitudes)

    return SpectrumResult(
        frequencies=frequencies,
        magnitudes=magnitudes,
        sample_rate_hz=fs,
        harmonics=harmonics,
        fft_size=n_fft,
        n_input=int(x.size),
    )


def find_harmonic_peaks(
    frequencies: np.ndarray,
    magnitudes: np.ndarray,
    *,
    search_floor_hz: float = PEAK_SEARCH_FLOOR_HZ,
    band_hz: Tuple[float, float] = PEAK_BAND_HZ,
    threshold_db: float = PEAK_THRESHOLD_DB,
    max_peaks: int = MAX_PEAKS,
) -> np.ndarray:
    """Candidate harmonic peaks of a dB spectrum.

    A bin is a peak if it is strictly greater than its two neighbours on each
    side, lies at or above ``search_floor_hz``, exceeds ``max(magnitudes) -
    threshold_db``, and falls strictly inside ``band_hz``.

    Returns
    -------
    ndarray
        Shape ``(k, 2)`` rows of ``(frequency, magnitude)``, ``k <= max_peaks``,
        sorted by descending magnitude.
    """
    f = np.asarray(frequencies, dtype=np.float64)
    m = np.asarray(magnitudes, dtype=np.float64)
    if f.shape != m.shape or f.ndim != 1:
        raise ValueError(f"frequencies and magnitudes must be 1D of equal length, got {f.shape} and {m.shape}")
    if m.size < 5:
        return np.empty((0, 2), dtype=np.float64)

    threshold = max(MIN_MAGNITUDE_DB, float(np.max(m))) - float(threshold_db)
    c = m[2:-2]
    fc = f[2:-2]
    is_peak = (c > m[:-4]) & (c > m[1:-3]) & (c > m[3:-1]) & (c > m[4:])
    lo, hi = band_hz
    keep = is_peak & (fc >= float(search_floor_hz)) & (c > threshold) & (fc > float(lo)) & (fc < float(hi))

    peaks = np.column_stack([fc[keep], c[keep]])
    order = np.argsort(-peaks[:, 1], kind="stable")
    return peaks[order][: int(max_peaks)]
