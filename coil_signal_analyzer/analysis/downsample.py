"""Extrema-preserving downsampling for display.

The series is cut into consecutive bins of ``bin_size`` points.  Each bin
emits, in chronological order:

- its first point, unless the bin minimum or maximum sits there;
- the minimum, if it deviates from the bin mean by more than
  ``EXTREMA_THRESHOLD`` of the bin range;
- the maximum, likewise, unless it is the same point as the minimum;
- a synthetic mean point at the midpoint of the bin's time span, if that time
  strictly follows the last point emitted so far.

A flat bin therefore collapses to its mean point, while spikes survive.
"""

from __future__ import annotations

import math
from typing import List

import numpy as np

from coil_signal_analyzer.models.config import DEFAULT_TARGET_RESOLUTION
from coil_signal_analyzer.models.results import DownsampledSeries

EXTREMA_THRESHOLD = 0.05


def bin_size_for(points_in_view: int, target_resolution: int = DEFAULT_TARGET_RESOLUTION) -> int:
    """``ceil(points_in_view / target_resolution)``, at least 1."""
    target = int(target_resolution)
    if target <= 0:
        raise ValueError(f"target_resolution must be > 0, got {target_resolution}")
    return max(1, int(math.ceil(int(points_in_view) / float(target))))


def downsample_extrema(times: np.ndarray, values: np.ndarray, bin_size: int) -> DownsampledSeries:
    """Reduce a (time, value) series to at most four points per bin.

    Parameters
    ----------
    times, values:
        1D arrays of equal length; ``times`` ascending.
    bin_size:
        Points per bin (>= 1).  With ``bin_size <= 1``, ``bin_size >= len``,
        or two points or fewer, the input is returned unchanged.

    Returns
    -------
    DownsampledSeries
    """
    t = np.asarray(times, dtype=np.float64)
    v = np.asarray(values, dtype=np.float64)
    if t.ndim != 1 or t.shape != v.shape:
        raise ValueError(f"times and values must be 1D of equal length, got {t.shape} and {v.shape}")
    size = int(bin_size)
    if size < 1:
        raise ValueError(f"bin_size must be >= 1, got {bin_size}")

    n = int(t.size)
    if n <= 2 or size <= 1 or size >= n:
        return DownsampledSeries(times=t, values=v, bin_size=size, n_input=n)

    out_t: List[float] = []
    out_v: List[float] = []

    for start in range(0, n, size):
        end = min(start + size, n)
        seg = v[start:end]

        i_min = start + int(np.argmin(seg))
        i_max = start + int(np.argmax(seg))
        v_min = float(v[i_min])
        v_max = float(v[i_max])
        avg = float(np.mean(seg))
        threshold = EXTREMA_THRESHOLD * abs(v_max - v_min)

        indices: List[int] = []
        if i_min != start and i_max != start:
            indices.append(start)
        if abs(v_min - avg) > threshold:
            indices.append(i_min)
        if i_max != i_min and abs(v_max - avg) > threshold:
            indices.append(i_max)
        indices.sort()

        for idx in indices:
            out_t.append(float(t[idx]))
            out_v.append(float(v[idx]))

        avg_time = 0.5 * (float(t[start]) + float(t[end - 1]))
        if not out_t or avg_time > out_t[-1]:
            out_t.append(avg_time)
            out_v.append(avg)

    return DownsampledSeries(
        times=np.asarray(out_t, dtype=np.float64),
        values=np.asarray(out_v, dtype=np.float64),
        bin_size=size,
        n_input=n,
    )
