from __future__ import annotations

import numpy as np

from coil_signal_analyzer.errors import DegenerateSignalError


def square_levels(signal: np.ndarray) -> tuple[float, float]:
    """Return ``(high, low)``: means of the samples above / not above the overall mean."""
    x = np.asarray(signal, dtype=np.float64)
    mean = float(np.mean(x))
    above = x > mean
    n_high = int(np.count_nonzero(above))
    n_low = int(x.size - n_high)
    if n_high == 0 or n_low == 0:
        raise DegenerateSignalError(
            f"signal has no variation around its mean ({n_high} samples above, {n_low} at or below)"
        )
    return float(np.mean(x[above])), float(np.mean(x[~above]))


def synthesize_reference(stacked: np.ndarray) -> np.ndarray:
    """Two-level square reference matching the polarity and length of ``stacked``.

    The first ``n // 2`` samples take the high level when the first half of
    ``stacked`` averages above the overall mean, the low level otherwise; the
    remaining samples take the other level.  Levels adapt to the signal's
    amplitude and DC offset (see :func:`square_levels`).
    """
    x = np.asarray(stacked, dtype=np.float64)
    if x.ndim != 1:
        raise ValueError(f"Expected 1D array, got shape {x.shape}")
    n = int(x.size)
    if n < 2:
        raise DegenerateSignalError(f"need at least 2 samples to build a square reference, got {n}")

    high, low = square_levels(x)
    half = n // 2
    first_half_high = float(np.mean(x[:half])) > float(np.mean(x))

    out = np.empty(n, dtype=np.float64)
    out[:half] = high if first_half_high else low
    out[half:] = low if first_half_high else high
    return out
