"""Static matplotlib views of analysis results.

Every builder returns the Figure and never calls ``plt.show()``; the caller
decides whether to display, save, or close it.  The backend must already be
configured (e.g. ``matplotlib.use("Agg")`` for headless use).
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from coil_signal_analyzer.models.results import DownsampledSeries, FIRResult, SpectrumResult


def _get_pyplot():
    """Import pyplot lazily (backend must already be configured)."""
    import matplotlib.pyplot as plt  # late import
    return plt


def plot_fir_result(result: FIRResult, *, title: Optional[str] = None):
    """Stacked / reference / filtered cycle on top, coefficients below."""
    plt = _get_pyplot()
    fig = plt.figure(figsize=(10.0, 6.4))
    ax1 = fig.add_subplot(2, 1, 1)
    ax2 = fig.add_subplot(2, 1, 2)

    idx = np.arange(result.stacked.size)
    ax1.plot(idx, result.stacked, label="stacked")
    ax1.plot(idx, result.reference, label="reference", linestyle="--")
    ax1.plot(idx, result.filtered, label="filtered", color="red")
    ax1.set_ylabel("amplitude")
    ax1.grid(True)
    ax1.legend(loc="best")

    if title is None:
        name = result.config.coil_name if result.config is not None else ""
        title = f"FIR correction {name}".strip()
    ax1.set_title(title)

    ax2.plot(idx, result.coefficients, color="black", linewidth=0.8)
    ax2.set_xlabel("sample")
    ax2.set_ylabel("coefficient")
    ax2.grid(True)

    fig.tight_layout()
    return fig


def plot_spectrum(
    result: SpectrumResult,
    *,
    title: Optional[str] = None,
    max_frequency_hz: Optional[float] = None,
    log_frequency: bool = False,
):
    """dB magnitude vs frequency, with harmonic peaks marked when present."""
    plt = _get_pyplot()
    fig = plt.figure(figsize=(10.0, 4.8))
    ax = fig.add_subplot(1, 1, 1)

    f = result.frequencies
    m = result.magnitudes
    if log_frequency:
        ax.semilogx(f[1:], m[1:], linewidth=0.8)
    else:
        ax.plot(f, m, linewidth=0.8)

    h = np.asarray(result.harmonics).reshape(-1, 2)
    if h.shape[0]:
        ax.plot(h[:, 0], h[:, 1], "o", color="red", label="peaks")
        ax.legend(loc="best")

    if max_frequency_hz is not None:
        ax.set_xlim(right=float(max_frequency_hz))
    ax.set_xlabel("frequency (Hz)")
    ax.set_ylabel("magnitude (dB)")
    ax.set_title(title or "Spectrum")
    ax.grid(True)
    fig.tight_layout()
    return fig


def plot_series(series: Sequence[DownsampledSeries], labels: Optional[Sequence[str]] = None, *, title: Optional[str] = None):
    """Overlay of downsampled recordings against sample index."""
    plt = _get_pyplot()
    fig = plt.figure(figsize=(10.0, 4.8))
    ax = fig.add_subplot(1, 1, 1)

    for i, s in enumerate(series):
        label = labels[i] if labels is not None and i < len(labels) else None
        ax.plot(s.times, s.values, label=label, linewidth=0.8)

    if labels:
        ax.legend(loc="best")
    ax.set_xlabel("sample")
    ax.set_ylabel("value")
    ax.set_title(title or "Recording")
    ax.grid(True)
    fig.tight_layout()
    return fig
