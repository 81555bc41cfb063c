from __future__ import annotations

import numpy as np
import pytest

from coil_signal_analyzer.analysis.resample import resample_linear
from coil_signal_analyzer.analysis.stacking import (
    extract_cycles,
    find_zero_crossings,
    stack_cycles,
)
from coil_signal_analyzer.errors import InsufficientDataError


def _square(n_cycles: int, spc: int, high: float = 1.0, low: float = -1.0) -> np.ndarray:
    half = spc // 2
    cycle = np.concatenate([np.full(half, high), np.full(spc - half, low)])
    return np.tile(cycle, n_cycles)


# -----------------------------------------------------------------------
# resample_linear
# -----------------------------------------------------------------------


def test_resample_same_length_is_identity() -> None:
    data = np.array([3.0, -1.0, 4.0, 1.5, 9.0])
    out = resample_linear(data, data.size)
    assert np.array_equal(out, data)
    assert out is not data


@pytest.mark.parametrize("n_out", [2, 3, 7, 64, 2048])
def test_resample_returns_exact_length_and_endpoints(n_out: int) -> None:
    data = np.sin(np.linspace(0, 3, 37))
    out = resample_linear(data, n_out)
    assert out.shape == (n_out,)
    assert out[0] == pytest.approx(data[0])
    assert out[-1] == pytest.approx(data[-1])


def test_resample_linear_ramp_stays_linear() -> None:
    data = np.arange(10, dtype=float)
    out = resample_linear(data, 19)
    assert np.allclose(out, np.linspace(0.0, 9.0, 19))


def test_resample_rejects_short_source() -> None:
    with pytest.raises(InsufficientDataError):
        resample_linear(np.array([1.0]), 8)
    with pytest.raises(InsufficientDataError):
        resample_linear(np.array([]), 8)


def test_resample_rejects_short_target() -> None:
    with pytest.raises(ValueError):
        resample_linear(np.arange(5.0), 1)


# -----------------------------------------------------------------------
# crossings / cycle extraction
# -----------------------------------------------------------------------


def test_find_zero_crossings_strict_sign_change() -> None:
    x = np.array([1.0, 1.0, -1.0, -1.0, 0.0, 1.0, -1.0])
    # Touching the level (0.0) is not a crossing.
    assert find_zero_crossings(x, 0.0).tolist() == [1, 5]


def test_extract_cycles_walks_even_crossings_and_caps_at_five() -> None:
    spc = 10
    data = _square(20, spc)
    crossings = find_zero_crossings(data, float(np.mean(data)))
    cycles = extract_cycles(data, crossings, spc)
    assert len(cycles) == 5
    for c in cycles:
        assert np.array_equal(c, cycles[0])


# -----------------------------------------------------------------------
# stack_cycles strategies
# -----------------------------------------------------------------------


def test_stack_square_wave_uses_stacking() -> None:
    spc = 50
    data = _square(10, spc)
    st = stack_cycles(data, 50000.0, 1000.0, 256)
    assert st.strategy == "stack-and-resample"
    # 7 crossings inside the 4-cycle search window -> cycles start at crossings 0, 2, 4.
    assert st.n_cycles == 3
    assert st.samples_per_cycle == spc
    assert st.values.shape == (256,)
    assert st.warnings == ()
    assert st.values.max() == pytest.approx(1.0)
    assert st.values.min() == pytest.approx(-1.0)


def test_stack_averages_cycles_sample_by_sample() -> None:
    spc = 20
    data = _square(10, spc)
    # Alternating bump on one high sample per cycle; crossings are unaffected.
    for k in range(10):
        data[k * spc + 2] += 0.5 * (-1) ** k
    st = stack_cycles(data, 2000.0, 100.0, spc)
    assert st.n_cycles == 3
    # Cycles start at samples 9, 29, 49 and carry the bumps of cycles 1, 2, 3 at offset 13.
    assert st.values[13] == pytest.approx(1.0 - 0.5 / 3.0)
    assert st.values[12] == pytest.approx(1.0)


def test_stack_short_buffer_resamples_raw_input() -> None:
    # Shorter than two cycles: no stacking error, just a resampled copy.
    spc = 50
    data = _square(2, spc)[:80]
    st = stack_cycles(data, 50000.0, 1000.0, 128)
    assert st.strategy == "raw-resample"
    assert st.n_cycles == 0
    assert len(st.warnings) == 1
    assert np.allclose(st.values, resample_linear(data, 128))


def test_stack_without_crossings_uses_first_cycle() -> None:
    spc = 20
    data = np.linspace(0.0, 1.0, 5 * spc)  # monotonic ramp: one crossing at most
    st = stack_cycles(data, 2000.0, 100.0, 64)
    assert st.strategy == "first-cycle-resample"
    assert np.allclose(st.values, resample_linear(data[:spc], 64))
    assert st.warnings


def test_stack_surfaces_insufficient_data() -> None:
    with pytest.raises(InsufficientDataError):
        stack_cycles(np.array([1.0]), 1000.0, 10.0, 64)
    with pytest.raises(InsufficientDataError):
        stack_cycles(np.zeros(100), 10.0, 1000.0, 64)
