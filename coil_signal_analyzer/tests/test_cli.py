from __future__ import annotations

from pathlib import Path

import numpy as np

from coil_signal_analyzer.scripts.analyze_recording import main


def _write_square(path: Path, n_cycles: int = 20, spc: int = 50) -> Path:
    cycle = np.concatenate([np.ones(spc // 2), -np.ones(spc - spc // 2)])
    np.tile(cycle, n_cycles).astype("<f4").tofile(path)
    return path


def test_length_command(tmp_path: Path, capsys) -> None:
    a = tmp_path / "a.bin"
    b = tmp_path / "b.bin"
    np.zeros(100, dtype="<f4").tofile(a)
    np.zeros(30, dtype="<f4").tofile(b)
    assert main(["length", str(a), str(b)]) == 0
    out = capsys.readouterr().out
    assert f"{a}: 100 samples" in out
    assert "total: 130 samples" in out


def test_fir_command_writes_csv(tmp_path: Path, capsys) -> None:
    rec = _write_square(tmp_path / "rec.bin")
    rc = main(["fir", str(rec), "--coil", "C1", "--rate", "50000", "--base", "1000", "--n-samples", "64", "--progress"])
    assert rc == 0
    out = capsys.readouterr().out
    assert "[progress] 100%" in out
    files = list((tmp_path / "fir_results").glob("C1_*_fir_filter.csv"))
    assert len(files) == 1


def test_fir_command_no_export(tmp_path: Path, capsys) -> None:
    rec = _write_square(tmp_path / "rec.bin")
    rc = main(["fir", str(rec), "--rate", "50000", "--base", "1000", "--n-samples", "64", "--no-export"])
    assert rc == 0
    assert "strategy=stack-and-resample" in capsys.readouterr().out
    assert not (tmp_path / "fir_results").exists()


def test_fft_command_exports_spectrum(tmp_path: Path, capsys) -> None:
    rec = _write_square(tmp_path / "rec.bin")
    out_csv = tmp_path / "spectrum.csv"
    assert main(["fft", str(rec), "--rate", "50000", "--out", str(out_csv)]) == 0
    assert out_csv.exists()
    assert "32769 bins" in capsys.readouterr().out


def test_downsample_command(tmp_path: Path, capsys) -> None:
    rec = tmp_path / "ramp.bin"
    np.arange(5000, dtype="<f4").tofile(rec)
    assert main(["downsample", str(rec), "--target", "50", "--out-dir", str(tmp_path / "ds")]) == 0
    assert "(bin_size=100)" in capsys.readouterr().out
    assert (tmp_path / "ds" / "ramp_downsampled.csv").exists()


def test_errors_return_nonzero(tmp_path: Path, capsys) -> None:
    assert main(["length", str(tmp_path / "missing.bin")]) == 1
    assert "[error] FileNotFoundError" in capsys.readouterr().out

    empty = tmp_path / "empty.bin"
    empty.write_bytes(b"")
    assert main(["fft", str(empty)]) == 1
    assert "[error] EmptyInputError" in capsys.readouterr().out
