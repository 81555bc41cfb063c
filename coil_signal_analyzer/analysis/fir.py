r"""Least-squares FIR design against a square reference.

The correction filter is modeled as a circular correlation of the measured
cycle with the coefficient vector.  Writing every circular shift of the
measured cycle as a row of the design matrix

.. math::

    A_{ij} = m_{(i + j) \bmod N}

the coefficients ``h`` minimise ``||A h - r||^2 + \lambda ||h||^2`` with the
ridge term scaled to the matrix itself,
``\lambda = \text{regularization} \cdot \text{mean}(\text{diag}(A^T A))``,
so the same ``regularization`` behaves consistently across input amplitudes.

The normal equations are solved by Gaussian elimination with row
normalisation and *no* row swapping.  A (near) zero pivot raises
:class:`~coil_signal_analyzer.errors.SingularSystemError`; a positive
regularization keeps ``A^T A + \lambda I`` positive definite, which makes
every pivot at least ``\lambda``.

Functions
---------
circulant_design_matrix
    Rows are the measured cycle shifted left by the row index.
normal_equations
    ``(A^T A + \lambda I, A^T r)`` with diagonal-mean scaled ridge.
solve_without_pivoting
    Gaussian elimination + back substitution on an owned copy.
solve_fir
    Full design: matrix, regularization, solve.
apply_fir
    Circular convolution consistent with the design matrix.
"""

from __future__ import annotations

import logging
import time
from typing import Tuple

import numpy as np

from coil_signal_analyzer.errors import InsufficientDataError, SingularSystemError

logger = logging.getLogger(__name__)

# Pivots at or below this fraction of the unregularized diagonal mean are treated as zero.
PIVOT_REL_TOL = 1e-12


def _as_1d(x: np.ndarray, name: str) -> np.ndarray:
    a = np.asarray(x, dtype=np.float64)
    if a.ndim != 1:
        raise ValueError(f"{name} must be 1D, got shape {a.shape}")
    return a


def circulant_design_matrix(measured: np.ndarray) -> np.ndarray:
    """Return the ``(N, N)`` matrix whose row ``i`` is ``measured`` rolled left by ``i``."""
    m = _as_1d(measured, "measured")
    n = m.size
    idx = (np.arange(n)[:, None] + np.arange(n)[None, :]) % n
    return m[idx]


def normal_equations(
    measured: np.ndarray,
    reference: np.ndarray,
    regularization: float,
) -> Tuple[np.ndarray, np.ndarray, float]:
    """Build the regularized normal equations.

    Returns
    -------
    (ata, atb, diag_mean)
        ``ata`` already includes ``regularization * diag_mean`` on its diagonal;
        ``diag_mean`` is the mean diagonal of the unregularized ``A^T A``.
    """
    m = _as_1d(measured, "measured")
    r = _as_1d(reference, "reference")
    if m.size != r.size:
        raise ValueError(f"measured and reference lengths differ: {m.size} != {r.size}")
    reg = float(regularization)
    if not np.isfinite(reg) or reg < 0:
        raise ValueError(f"regularization must be >= 0, got {regularization}")

    A = circulant_design_matrix(m)
    ata = A.T @ A
    atb = A.T @ r

    diag_mean = float(np.mean(np.diag(ata)))
    ata[np.diag_indices_from(ata)] += reg * diag_mean
    return ata, atb, diag_mean


def solve_without_pivoting(
    matrix: np.ndarray,
    rhs: np.ndarray,
    *,
    pivot_tol: float = 0.0,
) -> np.ndarray:
    """Solve ``matrix @ x = rhs`` by Gaussian elimination without row swaps.

    Each pivot row is divided by its diagonal entry, the column below it is
    eliminated, and the upper-triangular system is back-substituted.  The
    inputs are copied; the caller's arrays are never modified.

    Raises
    ------
    SingularSystemError
        When a pivot is non-finite or ``|pivot| <= pivot_tol``.
    """
    M = np.array(matrix, dtype=np.float64, copy=True)
    b = np.array(rhs, dtype=np.float64, copy=True)
    if M.ndim != 2 or M.shape[0] != M.shape[1]:
        raise ValueError(f"matrix must be square, got shape {M.shape}")
    n = M.shape[0]
    if b.shape != (n,):
        raise ValueError(f"rhs must have shape ({n},), got {b.shape}")

    tol = float(pivot_tol)
    for i in range(n):
        pivot = M[i, i]
        if not np.isfinite(pivot) or abs(pivot) <= tol:
            raise SingularSystemError(
                f"zero pivot at row {i} (pivot={pivot:.3g}, tol={tol:.3g}); increase regularization",
                row=i,
                pivot=float(pivot),
            )
        M[i, i:] /= pivot
        b[i] /= pivot
        if i + 1 < n:
            factors = M[i + 1 :, i].copy()
            M[i + 1 :, i:] -= np.outer(factors, M[i, i:])
            b[i + 1 :] -= factors * b[i]

    x = np.empty(n, dtype=np.float64)
    for i in range(n - 1, -1, -1):
        x[i] = b[i] - M[i, i + 1 :] @ x[i + 1 :]
    return x


def solve_fir(measured: np.ndarray, reference: np.ndarray, regularization: float) -> np.ndarray:
    """Least-squares FIR coefficients mapping ``measured`` onto ``reference``.

    Parameters
    ----------
    measured, reference:
        1D arrays of equal length N (the stacked cycle and its square reference).
    regularization:
        Ridge strength relative to ``mean(diag(A^T A))``; >= 0.

    Returns
    -------
    ndarray
        Fresh coefficient vector of length N.
    """
    m = _as_1d(measured, "measured")
    if m.size == 0:
        raise InsufficientDataError("cannot design a filter from an empty waveform")

    t0 = time.perf_counter()
    ata, atb, diag_mean = normal_equations(m, reference, regularization)
    coeffs = solve_without_pivoting(ata, atb, pivot_tol=PIVOT_REL_TOL * abs(diag_mean))
    logger.debug(
        "solved %dx%d FIR system (regularization=%g) in %.3fs",
        m.size,
        m.size,
        float(regularization),
        time.perf_counter() - t0,
    )
    return coeffs


def apply_fir(signal: np.ndarray, coefficients: np.ndarray) -> np.ndarray:
    """Circularly filter ``signal``: ``out[i] = dot(coefficients, roll(signal, -i))``.

    Uses the same shift convention as :func:`circulant_design_matrix`, so
    ``apply_fir(measured, solve_fir(measured, reference, reg))`` approximates
    ``reference``.
    """
    s = _as_1d(signal, "signal")
    h = _as_1d(coefficients, "coefficients")
    if s.size != h.size:
        raise ValueError(f"signal and coefficients lengths differ: {s.size} != {h.size}")
    if s.size == 0:
        return np.empty(0, dtype=np.float64)
    return circulant_design_matrix(s) @ h
