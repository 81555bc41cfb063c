"""Coil Signal Analyzer -- Python tooling for electromagnetic survey coil recordings.

This package provides tools for:
- Reading single-channel float32 recordings (bounded windows, whole files, sample counts)
- Stacking periodic cycles into one representative waveform
- Designing least-squares FIR correction filters against a square reference
- Computing windowed single-sided FFT spectra with harmonic peak candidates
- Extrema-preserving downsampling of long recordings for display
- Exporting results to CSV and rendering them with matplotlib

Key principles:
- Stateless analysis: every operation is a pure function of its inputs
- Graceful degradation only where documented (cycle stacking fallbacks)
- Files are opened read-only and closed before each call returns

Main subpackages:
- analysis: stacking, reference synthesis, FIR solve/filter, spectrum, downsampling, pipelines
- ingest: recording file access
- models: configuration and result dataclasses
- scripts: command-line entry point
"""

from .errors import (
    CoilSignalError,
    DegenerateSignalError,
    EmptyInputError,
    InsufficientDataError,
    SingularSystemError,
)
from .models import AnalysisConfig

__all__ = [
    "AnalysisConfig",
    "CoilSignalError",
    "DegenerateSignalError",
    "EmptyInputError",
    "InsufficientDataError",
    "SingularSystemError",
]
