from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pytest

from coil_signal_analyzer.analysis.pipelines import (
    compute_file_spectrum,
    compute_spectra,
    process_fir,
    process_fir_batch,
    read_and_downsample,
)
from coil_signal_analyzer.models.config import AnalysisConfig

FS = 50000.0
F0 = 1000.0


def _write_square(path: Path, n_cycles: int = 20, spc: int = 50) -> Path:
    half = spc // 2
    cycle = np.concatenate([np.full(half, 0.8), np.full(spc - half, -0.6)])
    np.tile(cycle, n_cycles).astype("<f4").tofile(path)
    return path


def _config(path: Path, **kw) -> AnalysisConfig:
    kw.setdefault("n_samples", 64)
    return AnalysisConfig(
        file_path=str(path),
        coil_name="C1",
        sample_rate_hz=FS,
        base_frequency_hz=F0,
        **kw,
    )


def test_process_fir_reports_monotonic_progress(tmp_path: Path) -> None:
    rec = _write_square(tmp_path / "rec.bin")
    seen = []
    res = process_fir(_config(rec), seen.append)

    assert seen == [20, 40, 60, 80, 100]
    assert res.coefficients.shape == (64,)
    assert res.filtered.shape == res.stacked.shape == res.reference.shape == (64,)
    assert res.strategy == "stack-and-resample"
    assert res.config is not None and res.config.coil_name == "C1"
    assert res.warnings == ()
    assert res.rms_deviation < float(np.sqrt(np.mean((res.stacked - res.reference) ** 2)))


def test_process_fir_reads_only_the_configured_cycles(tmp_path: Path) -> None:
    rec = _write_square(tmp_path / "rec.bin", n_cycles=40)
    tail = np.full(1000, 1e6, dtype="<f4")
    with rec.open("ab") as fh:
        tail.tofile(fh)
    res = process_fir(_config(rec, read_cycles=10))
    assert np.all(np.abs(res.stacked) < 1.0)


def test_process_fir_short_file_warns(tmp_path: Path) -> None:
    rec = _write_square(tmp_path / "short.bin", n_cycles=6)
    res = process_fir(_config(rec))
    assert any("short read" in w for w in res.warnings)
    assert np.all(np.isfinite(res.coefficients))


def test_failing_progress_sink_does_not_abort(tmp_path: Path, caplog) -> None:
    rec = _write_square(tmp_path / "rec.bin")

    def bad_sink(pct: int) -> None:
        raise RuntimeError(f"sink down at {pct}")

    with caplog.at_level(logging.ERROR, logger="coil_signal_analyzer.analysis.pipelines"):
        res = process_fir(_config(rec), bad_sink)
    assert res.coefficients.shape == (64,)
    assert "progress sink failed" in caplog.text


def test_process_fir_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        process_fir(_config(tmp_path / "nope.bin"))


def test_batch_continues_after_failure(tmp_path: Path) -> None:
    good = _write_square(tmp_path / "good.bin")
    items = [
        ("S1", _config(tmp_path / "missing.bin")),
        ("S2", _config(good)),
    ]
    sinks = {}

    def factory(station: str):
        sinks[station] = []
        return sinks[station].append

    outcomes = process_fir_batch(items, factory)
    assert [o.station for o in outcomes] == ["S1", "S2"]
    assert not outcomes[0].ok
    assert "FileNotFoundError" in outcomes[0].error
    assert outcomes[1].ok
    assert outcomes[1].result.coefficients.shape == (64,)
    assert sinks["S1"] == []
    assert sinks["S2"] == [20, 40, 60, 80, 100]


def test_compute_file_spectrum_progress(tmp_path: Path) -> None:
    rec = _write_square(tmp_path / "rec.bin")
    seen = []
    res = compute_file_spectrum(rec, FS, seen.append, fft_size=1024)
    assert seen == [50, 100]
    assert res.n_bins == 513
    assert res.n_input == 1000
    assert res.frequencies[-1] == pytest.approx(FS / 2)


def test_compute_spectra_skips_unreadable(tmp_path: Path) -> None:
    a = _write_square(tmp_path / "a.bin")
    empty = tmp_path / "empty.bin"
    empty.write_bytes(b"")
    out = compute_spectra([a, tmp_path / "missing.bin", empty], FS, fft_size=1024)
    assert list(out) == ["a.bin"]


def test_read_and_downsample_window(tmp_path: Path) -> None:
    rec = tmp_path / "ramp.bin"
    np.arange(10_000, dtype="<f4").tofile(rec)
    (whole,) = read_and_downsample([rec], 0, 0, target_resolution=100)
    assert whole.n_input == 10_000
    assert whole.bin_size == 100
    assert 100 <= len(whole) <= 400
    assert whole.times[0] >= 0.0 and whole.times[-1] <= 9999.0

    (part,) = read_and_downsample([rec], 2000, 3000, bin_size=1)
    assert part.n_input == 1000
    assert np.array_equal(part.times, np.arange(2000, 3000, dtype=float))
    assert np.array_equal(part.values, part.times)
