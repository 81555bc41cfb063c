"""Command-line front end for the analysis pipelines.

Examples
--------
  python -m coil_signal_analyzer.scripts.analyze_recording fir rec.bin --coil C1 --rate 51200 --base 1000
  python -m coil_signal_analyzer.scripts.analyze_recording fft rec.bin --rate 51200 --harmonics
  python -m coil_signal_analyzer.scripts.analyze_recording length a.bin b.bin
  python -m coil_signal_analyzer.scripts.analyze_recording downsample rec.bin --start 0 --end 100000
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from coil_signal_analyzer.analysis.pipelines import (
    compute_file_spectrum,
    process_fir,
    read_and_downsample,
)
from coil_signal_analyzer.errors import CoilSignalError
from coil_signal_analyzer.export import (
    export_dataframe,
    harmonics_to_frame,
    series_to_frame,
    spectrum_to_frame,
    write_fir_csv,
)
from coil_signal_analyzer.ingest.sample_store import SampleStore
from coil_signal_analyzer.models.config import (
    DEFAULT_FFT_SAMPLE_RATE_HZ,
    DEFAULT_N_SAMPLES,
    DEFAULT_REGULARIZATION,
    DEFAULT_TARGET_RESOLUTION,
    AnalysisConfig,
)


def _print_progress(pct: int) -> None:
    print(f"[progress] {pct}%", flush=True)


def _cmd_fir(ns) -> int:
    cfg = AnalysisConfig(
        file_path=ns.file,
        coil_name=ns.coil,
        sample_rate_hz=float(ns.rate),
        base_frequency_hz=float(ns.base),
        regularization=float(ns.regularization),
        n_samples=int(ns.n_samples),
    )
    res = process_fir(cfg, _print_progress if ns.progress else None)
    for msg in res.warnings:
        print(f"[warn] {msg}")
    print(f"[info] strategy={res.strategy} cycles={res.n_cycles} rms deviation={res.rms_deviation:.4g}")
    if not ns.no_export:
        out = write_fir_csv(res, ns.out)
        print(f"[info] FIR coefficients saved to {out}")
    return 0


def _cmd_fft(ns) -> int:
    res = compute_file_spectrum(
        ns.file,
        float(ns.rate),
        _print_progress if ns.progress else None,
        find_harmonics=bool(ns.harmonics),
    )
    print(f"[info] {res.n_bins} bins, {res.n_input} input samples, fs={res.sample_rate_hz:g} Hz")
    for f, m in res.harmonics:
        print(f"  peak {f:10.2f} Hz  {m:8.2f} dB")
    if ns.out:
        export_dataframe(spectrum_to_frame(res), ns.out)
        print(f"[info] spectrum saved to {ns.out}")
        if res.harmonics.size:
            peaks_out = Path(ns.out).with_name(Path(ns.out).stem + "_harmonics.csv")
            export_dataframe(harmonics_to_frame(res), peaks_out)
    return 0


def _cmd_length(ns) -> int:
    store = SampleStore()
    for f in ns.files:
        print(f"{f}: {store.file_sample_count(f)} samples")
    if len(ns.files) > 1:
        print(f"total: {store.total_sample_count(ns.files)} samples")
    return 0


def _cmd_downsample(ns) -> int:
    series = read_and_downsample(
        ns.files,
        int(ns.start),
        int(ns.end),
        target_resolution=int(ns.target),
    )
    for f, s in zip(ns.files, series):
        print(f"{f}: {s.n_input} -> {len(s)} points (bin_size={s.bin_size})")
    if ns.out_dir:
        out_dir = Path(ns.out_dir)
        for f, s in zip(ns.files, series):
            export_dataframe(series_to_frame(s), out_dir / f"{Path(f).stem}_downsampled.csv")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    import argparse

    p = argparse.ArgumentParser(
        description="FIR design, FFT spectra, and display downsampling for coil recordings.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("-v", "--verbose", action="count", default=0, help="-v for INFO, -vv for DEBUG logging")
    sub = p.add_subparsers(dest="command", required=True)

    pf = sub.add_parser("fir", help="Design a FIR correction filter")
    pf.add_argument("file", help="Recording (.bin, float32 LE)")
    pf.add_argument("--coil", default="", help="Coil / channel name")
    pf.add_argument("--rate", type=float, required=True, help="Sample rate in Hz")
    pf.add_argument("--base", type=float, required=True, help="Base frequency in Hz")
    pf.add_argument("--regularization", type=float, default=DEFAULT_REGULARIZATION)
    pf.add_argument("--n-samples", type=int, default=DEFAULT_N_SAMPLES, help="Analysis resolution")
    pf.add_argument("--out", default=None, help="Output CSV file or directory (default: <dir>/fir_results)")
    pf.add_argument("--no-export", action="store_true", help="Do not write the coefficient CSV")
    pf.add_argument("--progress", action="store_true", help="Print progress checkpoints")
    pf.set_defaults(func=_cmd_fir)

    pq = sub.add_parser("fft", help="Compute a windowed FFT spectrum")
    pq.add_argument("file")
    pq.add_argument("--rate", type=float, default=DEFAULT_FFT_SAMPLE_RATE_HZ, help="Sample rate in Hz")
    pq.add_argument("--harmonics", action="store_true", help="Report candidate harmonic peaks")
    pq.add_argument("--out", default=None, help="Spectrum CSV output")
    pq.add_argument("--progress", action="store_true")
    pq.set_defaults(func=_cmd_fft)

    pl = sub.add_parser("length", help="Print sample counts")
    pl.add_argument("files", nargs="+")
    pl.set_defaults(func=_cmd_length)

    pd_ = sub.add_parser("downsample", help="Extrema-preserving downsampling of a window")
    pd_.add_argument("files", nargs="+")
    pd_.add_argument("--start", type=int, default=0)
    pd_.add_argument("--end", type=int, default=0, help="Exclusive end index (0 = end of file)")
    pd_.add_argument("--target", type=int, default=DEFAULT_TARGET_RESOLUTION, help="Target points per view")
    pd_.add_argument("--out-dir", default=None)
    pd_.set_defaults(func=_cmd_downsample)

    ns = p.parse_args(list(argv) if argv is not None else None)

    level = logging.WARNING
    if ns.verbose == 1:
        level = logging.INFO
    elif ns.verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        return int(ns.func(ns))
    except (OSError, CoilSignalError, ValueError) as exc:
        print(f"[error] {type(exc).__name__}: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
