"""Signal-processing and numerical-solving core.

Design principle:
  - Ingest produces float64 sample buffers from flat float32 recordings.
  - Analysis consumes those buffers and produces derived waveforms and spectra.

Every function here is a pure function of its explicit inputs; none of them
keep state between calls or touch files.
"""

from .downsample import bin_size_for, downsample_extrema
from .fir import apply_fir, circulant_design_matrix, solve_fir
from .reference import synthesize_reference
from .resample import resample_linear
from .spectrum import compute_spectrum, find_harmonic_peaks
from .stacking import find_zero_crossings, stack_cycles

__all__ = [
    "apply_fir",
    "bin_size_for",
    "circulant_design_matrix",
    "compute_spectrum",
    "downsample_extrema",
    "find_harmonic_peaks",
    "find_zero_crossings",
    "resample_linear",
    "solve_fir",
    "stack_cycles",
    "synthesize_reference",
]
