"""Cycle detection, stacking, and resampling.

A representative single cycle is derived from a short recording window:

  1) Zero crossings of ``x - mean(x)`` are located within the first
     ``SEARCH_CYCLES`` periods.
  2) Starting at every other crossing, up to ``MAX_STACK_CYCLES`` full
     periods of ``floor(sample_rate / base_frequency)`` samples are
     extracted and averaged sample by sample.
  3) The average is linearly resampled to the analysis resolution.

When the window is too short or no usable crossings exist, the stacker
degrades to resampling the raw input instead of failing.  The strategies are
tried in order and the first whose precondition holds wins:

  - ``raw-resample``          buffer shorter than two cycles
  - ``stack-and-resample``    >= 2 crossings and >= 1 complete cycle
  - ``first-cycle-resample``  always (first period, or everything available)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from coil_signal_analyzer.analysis.resample import resample_linear
from coil_signal_analyzer.errors import InsufficientDataError
from coil_signal_analyzer.models.results import StackedWaveform

logger = logging.getLogger(__name__)

MAX_STACK_CYCLES = 5
SEARCH_CYCLES = 4


def find_zero_crossings(data: np.ndarray, level: float) -> np.ndarray:
    """Indices ``i`` where ``data[i] - level`` and ``data[i+1] - level`` have strictly opposite signs."""
    x = np.asarray(data, dtype=np.float64) - float(level)
    if x.size < 2:
        return np.empty(0, dtype=np.int64)
    return np.flatnonzero(x[:-1] * x[1:] < 0.0)


def extract_cycles(
    data: np.ndarray,
    crossings: Sequence[int],
    samples_per_cycle: int,
    *,
    max_cycles: int = MAX_STACK_CYCLES,
) -> List[np.ndarray]:
    """Cut full periods starting at every even-indexed crossing.

    Crossings are walked in pairs (a pair of crossings spans one period of a
    two-level waveform); a candidate that would run past the end of ``data``
    stops the walk.
    """
    x = np.asarray(data, dtype=np.float64)
    spc = int(samples_per_cycle)
    cycles: List[np.ndarray] = []
    for i in range(0, len(crossings) - 1, 2):
        if len(cycles) >= max_cycles:
            break
        start = int(crossings[i])
        end = start + spc
        if end > x.size:
            break
        cycles.append(x[start:end].copy())
    return cycles


@dataclass(frozen=True)
class _StackContext:
    data: np.ndarray
    samples_per_cycle: int
    n_samples: int


_Strategy = Callable[[_StackContext], Optional[Tuple[np.ndarray, int, str]]]


def _raw_resample(ctx: _StackContext) -> Optional[Tuple[np.ndarray, int, str]]:
    if ctx.data.size >= 2 * ctx.samples_per_cycle:
        return None
    note = f"only {ctx.data.size} samples (< 2 cycles of {ctx.samples_per_cycle}); resampled raw input"
    return ctx.data, 0, note


def _stack_and_resample(ctx: _StackContext) -> Optional[Tuple[np.ndarray, int, str]]:
    spc = ctx.samples_per_cycle
    mean = float(np.mean(ctx.data))
    search = ctx.data[: min(ctx.data.size, spc * SEARCH_CYCLES)]
    crossings = find_zero_crossings(search, mean)
    if crossings.size < 2:
        logger.debug("found %d zero crossing(s) in %d samples; not stacking", crossings.size, search.size)
        return None

    cycles = extract_cycles(ctx.data, crossings, spc)
    if not cycles:
        logger.debug("no complete cycle fits after the first crossing; not stacking")
        return None

    return np.mean(np.vstack(cycles), axis=0), len(cycles), ""


def _first_cycle_resample(ctx: _StackContext) -> Optional[Tuple[np.ndarray, int, str]]:
    data = ctx.data[: ctx.samples_per_cycle]
    return data, 0, "no usable zero crossings; resampled the first cycle without stacking"


STRATEGIES: Tuple[Tuple[str, _Strategy], ...] = (
    ("raw-resample", _raw_resample),
    ("stack-and-resample", _stack_and_resample),
    ("first-cycle-resample", _first_cycle_resample),
)


def stack_cycles(
    data: np.ndarray,
    sample_rate_hz: float,
    base_frequency_hz: float,
    n_samples: int,
) -> StackedWaveform:
    """Build a single averaged cycle of length ``n_samples``.

    Parameters
    ----------
    data:
        1D recording window (typically ~10 fundamental periods).
    sample_rate_hz, base_frequency_hz:
        Define ``samples_per_cycle = floor(sample_rate / base_frequency)``.
    n_samples:
        Analysis resolution (>= 2).

    Returns
    -------
    StackedWaveform
        Values plus the strategy that produced them.  Fallback strategies add a
        warning instead of raising.

    Raises
    ------
    InsufficientDataError
        If fewer than 2 samples are available to resample, or the sample rate
        is below the base frequency.
    """
    x = np.asarray(data, dtype=np.float64)
    if x.ndim != 1:
        raise ValueError(f"Expected 1D array, got shape {x.shape}")
    if int(n_samples) < 2:
        raise ValueError(f"n_samples must be >= 2, got {n_samples}")

    spc = int(float(sample_rate_hz) / float(base_frequency_hz))
    if spc < 1:
        raise InsufficientDataError(
            f"samples per cycle is {spc} (sample_rate={sample_rate_hz}, base_frequency={base_frequency_hz})"
        )

    ctx = _StackContext(data=x, samples_per_cycle=spc, n_samples=int(n_samples))
    for name, strategy in STRATEGIES:
        out = strategy(ctx)
        if out is None:
            continue
        source, n_cycles, note = out
        warnings: Tuple[str, ...] = ()
        if note:
            logger.warning("cycle stacking fallback (%s): %s", name, note)
            warnings = (note,)
        else:
            logger.debug("stacked %d cycle(s) of %d samples", n_cycles, spc)
        return StackedWaveform(
            values=resample_linear(source, ctx.n_samples),
            strategy=name,
            n_cycles=int(n_cycles),
            samples_per_cycle=spc,
            warnings=warnings,
        )

    # The last strategy has no precondition.
    raise AssertionError("unreachable: no stacking strategy applied")
