from __future__ import annotations

import numpy as np

from coil_signal_analyzer.errors import InsufficientDataError


def resample_linear(data: np.ndarray, n_out: int) -> np.ndarray:
    """Linearly resample ``data`` onto ``n_out`` evenly spaced points.

    Output point ``i`` sits at source position ``i * (len(data) - 1) / (n_out - 1)``
    and is interpolated between ``floor(pos)`` and the next sample; the last
    source sample is used as-is when no right neighbour exists.

    Parameters
    ----------
    data:
        1D source array with at least 2 samples.
    n_out:
        Number of output points, >= 2.

    Returns
    -------
    ndarray
        Float64 array of length ``n_out``. When ``n_out == len(data)`` this is a
        copy of ``data``.
    """
    x = np.asarray(data, dtype=np.float64)
    if x.ndim != 1:
        raise ValueError(f"Expected 1D array, got shape {x.shape}")
    n_out = int(n_out)
    if n_out < 2:
        raise ValueError(f"n_out must be >= 2, got {n_out}")
    n_src = int(x.size)
    if n_src < 2:
        raise InsufficientDataError(f"cannot resample {n_src} sample(s); need at least 2")

    if n_src == n_out:
        return x.copy()

    ratio = (n_src - 1) / float(n_out - 1)
    pos = np.arange(n_out, dtype=np.float64) * ratio
    idx = np.minimum(np.floor(pos).astype(np.int64), n_src - 1)
    frac = pos - idx
    right = np.minimum(idx + 1, n_src - 1)
    return x[idx] * (1.0 - frac) + x[right] * frac
