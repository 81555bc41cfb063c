"""Tabular export of analysis results.

FIR coefficient files use the layout consumed by the acquisition tooling::

    "<coil name>"
    Index,Coefficient
    0,<c0>
    1,<c1>
    ...

and are named ``<coil>_<YYYYMMDD>_<HHMMSS>_fir_filter.csv``.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Literal, Optional

import numpy as np
import pandas as pd

from coil_signal_analyzer.models.results import DownsampledSeries, FIRResult, SpectrumResult

ExportFormat = Literal["csv", "parquet"]


def fir_result_to_frame(result: FIRResult) -> pd.DataFrame:
    """One row per sample index with all four FIR waveforms."""
    return pd.DataFrame(
        {
            "index": np.arange(result.coefficients.size, dtype=int),
            "coefficient": result.coefficients,
            "stacked": result.stacked,
            "reference": result.reference,
            "filtered": result.filtered,
        }
    )


def spectrum_to_frame(result: SpectrumResult) -> pd.DataFrame:
    return pd.DataFrame({"frequency_hz": result.frequencies, "magnitude_db": result.magnitudes})


def harmonics_to_frame(result: SpectrumResult) -> pd.DataFrame:
    h = np.asarray(result.harmonics, dtype=np.float64).reshape(-1, 2)
    return pd.DataFrame({"frequency_hz": h[:, 0], "magnitude_db": h[:, 1]})


def series_to_frame(series: DownsampledSeries) -> pd.DataFrame:
    return pd.DataFrame({"time": series.times, "value": series.values})


def fir_filename(coil_name: str, when: Optional[datetime] = None) -> str:
    """``<coil>_<YYYYMMDD>_<HHMMSS>_fir_filter.csv``."""
    when = when or datetime.now()
    safe = "".join(ch if (ch.isalnum() or ch in "-_.") else "_" for ch in str(coil_name)) or "coil"
    return f"{safe}_{when:%Y%m%d}_{when:%H%M%S}_fir_filter.csv"


def write_fir_csv(
    result: FIRResult,
    path: Optional[str | Path] = None,
    *,
    coil_name: Optional[str] = None,
    when: Optional[datetime] = None,
) -> Path:
    """Write FIR coefficients in the acquisition tooling's CSV layout.

    Parameters
    ----------
    result:
        FIR design result.
    path:
        Output file, or a directory to place the default file name in.
        Defaults to ``<recording dir>/fir_results/`` from ``result.config``.
    coil_name:
        Title line; defaults to ``result.config.coil_name``.

    Returns
    -------
    Path
        The file written.
    """
    cfg = result.config
    name = coil_name if coil_name is not None else (cfg.coil_name if cfg is not None else "")

    if path is None:
        if cfg is None:
            raise ValueError("path is required when the result carries no config")
        out = cfg.results_dir / fir_filename(name, when)
    else:
        out = Path(path).expanduser()
        if out.is_dir():
            out = out / fir_filename(name, when)
    out.parent.mkdir(parents=True, exist_ok=True)

    df = pd.DataFrame(
        {
            "Index": np.arange(result.coefficients.size, dtype=int),
            "Coefficient": result.coefficients,
        }
    )
    with out.open("w", newline="") as fh:
        fh.write(f'"{name}"\n')
        df.to_csv(fh, index=False)
    return out


def read_fir_csv(path: str | Path) -> tuple[str, np.ndarray]:
    """Read back a file written by :func:`write_fir_csv` as ``(coil_name, coefficients)``."""
    p = Path(path)
    with p.open("r") as fh:
        title = fh.readline().strip()
        df = pd.read_csv(fh)
    if list(df.columns) != ["Index", "Coefficient"]:
        raise ValueError(f"{p.name}: expected columns Index,Coefficient, got {list(df.columns)}")
    return title.strip('"'), df["Coefficient"].to_numpy(dtype=np.float64)


def export_dataframe(df: pd.DataFrame, path: str | Path, fmt: ExportFormat = "csv") -> Path:
    """
    Export a DataFrame to CSV or Parquet.

    Parquet requires `pyarrow` (recommended) or `fastparquet`.
    """
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)

    if fmt == "csv":
        df.to_csv(out, index=False)
        return out

    if fmt == "parquet":
        try:
            df.to_parquet(out, index=False)
        except Exception as e:
            raise RuntimeError(
                "Parquet export failed. Install 'pyarrow' (recommended) or 'fastparquet'. "
                f"Original error: {e}"
            ) from e
        return out

    raise ValueError(f"Unknown export format: {fmt}")
