"""Request-level orchestration: FIR design, spectra, and display windows.

Each function reads what it needs through a
:class:`~coil_signal_analyzer.ingest.sample_store.SampleStore`, runs the
stateless analysis steps, and reports coarse progress to an optional sink.

Progress sinks are fire-and-forget: a sink that raises is logged and
ignored, and never aborts the computation.

Functions
---------
process_fir
    read (partial) -> stack -> reference -> solve -> filter.
process_fir_batch
    :func:`process_fir` per item; one failure does not stop the batch.
compute_file_spectrum
    read (full) -> spectrum.
compute_spectra
    :func:`compute_file_spectrum` per file, keyed by basename; unreadable
    files are skipped.
read_and_downsample
    Windowed read + extrema-preserving downsampling per file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from coil_signal_analyzer.analysis.downsample import bin_size_for, downsample_extrema
from coil_signal_analyzer.analysis.fir import apply_fir, solve_fir
from coil_signal_analyzer.analysis.reference import synthesize_reference
from coil_signal_analyzer.analysis.spectrum import compute_spectrum
from coil_signal_analyzer.analysis.stacking import stack_cycles
from coil_signal_analyzer.errors import CoilSignalError
from coil_signal_analyzer.ingest.sample_store import SampleStore
from coil_signal_analyzer.models.config import (
    DEFAULT_FFT_SAMPLE_RATE_HZ,
    DEFAULT_FFT_SIZE,
    DEFAULT_TARGET_RESOLUTION,
    AnalysisConfig,
)
from coil_signal_analyzer.models.results import DownsampledSeries, FIRResult, SpectrumResult

logger = logging.getLogger(__name__)

ProgressSink = Callable[[int], None]

# FIR checkpoints (percent).
PROGRESS_READ = 20
PROGRESS_STACKED = 40
PROGRESS_REFERENCE = 60
PROGRESS_SOLVED = 80
PROGRESS_DONE = 100


def _emit(sink: Optional[ProgressSink], pct: int) -> None:
    if sink is None:
        return
    try:
        sink(int(pct))
    except Exception:
        logger.exception("progress sink failed at %d%%; continuing", pct)


def process_fir(
    config: AnalysisConfig,
    progress: Optional[ProgressSink] = None,
    *,
    store: Optional[SampleStore] = None,
) -> FIRResult:
    """Design the FIR correction filter for one recording.

    Only the first ``config.read_cycles`` fundamental periods are read.

    Returns
    -------
    FIRResult
        Coefficients, filtered cycle, stacked cycle, and square reference, all of
        length ``config.n_samples``.
    """
    store = store or SampleStore()
    warnings: List[str] = []

    data = store.read_window(config.file_path, 0, config.samples_to_read)
    if data.size < config.samples_to_read:
        warnings.append(f"short read: requested {config.samples_to_read} samples, got {data.size}")
    logger.info("FIR %s: read %d samples from %s", config.coil_name, data.size, config.file_path)
    _emit(progress, PROGRESS_READ)

    stacked = stack_cycles(data, config.sample_rate_hz, config.base_frequency_hz, config.n_samples)
    warnings.extend(stacked.warnings)
    _emit(progress, PROGRESS_STACKED)

    reference = synthesize_reference(stacked.values)
    _emit(progress, PROGRESS_REFERENCE)

    coefficients = solve_fir(stacked.values, reference, config.regularization)
    _emit(progress, PROGRESS_SOLVED)

    filtered = apply_fir(stacked.values, coefficients)
    _emit(progress, PROGRESS_DONE)

    result = FIRResult(
        coefficients=coefficients,
        filtered=filtered,
        stacked=stacked.values,
        reference=reference,
        config=config,
        strategy=stacked.strategy,
        n_cycles=stacked.n_cycles,
        warnings=tuple(warnings),
    )
    logger.info(
        "FIR %s: %s (%d cycles), rms deviation %.4g",
        config.coil_name,
        result.strategy,
        result.n_cycles,
        result.rms_deviation,
    )
    return result


@dataclass(frozen=True)
class FIROutcome:
    """One item of a batch: either ``result`` or ``error`` is set."""

    station: str
    config: AnalysisConfig
    result: Optional[FIRResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


def process_fir_batch(
    items: Iterable[Tuple[str, AnalysisConfig]],
    progress_factory: Optional[Callable[[str], ProgressSink]] = None,
    *,
    store: Optional[SampleStore] = None,
) -> List[FIROutcome]:
    """Run :func:`process_fir` for each ``(station, config)`` pair in order.

    File and analysis errors are recorded in the item's outcome; the batch
    carries on with the next item.
    """
    store = store or SampleStore()
    outcomes: List[FIROutcome] = []
    for station, config in items:
        sink = progress_factory(station) if progress_factory is not None else None
        try:
            result = process_fir(config, sink, store=store)
        except (OSError, ValueError) as exc:
            logger.error("FIR for %s failed: %s", station, exc)
            outcomes.append(FIROutcome(station=station, config=config, error=f"{type(exc).__name__}: {exc}"))
            continue
        outcomes.append(FIROutcome(station=station, config=config, result=result))
    return outcomes


def compute_file_spectrum(
    file_path: str | Path,
    sample_rate_hz: float = DEFAULT_FFT_SAMPLE_RATE_HZ,
    progress: Optional[ProgressSink] = None,
    *,
    fft_size: int = DEFAULT_FFT_SIZE,
    find_harmonics: bool = False,
    store: Optional[SampleStore] = None,
) -> SpectrumResult:
    """Spectrum of a whole recording."""
    store = store or SampleStore()
    data = store.read_all(file_path)
    logger.info("FFT: read %d samples from %s", data.size, file_path)
    _emit(progress, 50)

    result = compute_spectrum(data, sample_rate_hz, fft_size=fft_size, find_harmonics=find_harmonics)
    _emit(progress, PROGRESS_DONE)
    return result


def compute_spectra(
    file_paths: Sequence[str | Path],
    sample_rate_hz: float = DEFAULT_FFT_SAMPLE_RATE_HZ,
    *,
    fft_size: int = DEFAULT_FFT_SIZE,
    find_harmonics: bool = False,
    store: Optional[SampleStore] = None,
) -> Dict[str, SpectrumResult]:
    """Spectra of several recordings keyed by file name; failures are logged and skipped."""
    store = store or SampleStore()
    results: Dict[str, SpectrumResult] = {}
    for p in file_paths:
        try:
            results[Path(p).name] = compute_file_spectrum(
                p,
                sample_rate_hz,
                fft_size=fft_size,
                find_harmonics=find_harmonics,
                store=store,
            )
        except (OSError, CoilSignalError) as exc:
            logger.warning("skipping %s: %s", p, exc)
    return results


def read_and_downsample(
    file_paths: Sequence[str | Path],
    start_index: int = 0,
    end_index: int = 0,
    *,
    target_resolution: int = DEFAULT_TARGET_RESOLUTION,
    bin_size: Optional[int] = None,
    store: Optional[SampleStore] = None,
) -> List[DownsampledSeries]:
    """Read ``[start_index, end_index)`` from each file and downsample for display.

    ``end_index <= 0`` means "to end of file", so ``(0, 0)`` is the whole
    recording.  The bin size is derived from the requested span and
    ``target_resolution`` unless given explicitly.
    """
    store = store or SampleStore()
    out: List[DownsampledSeries] = []
    for p in file_paths:
        window = store.read_window_indices(p, start_index, end_index)
        size = bin_size if bin_size is not None else bin_size_for(window.n_samples, target_resolution)
        series = downsample_extrema(window.times, window.values, size)
        logger.debug("%s: %d -> %d points (bin_size=%d)", Path(p).name, window.n_samples, len(series), size)
        out.append(series)
    return out
