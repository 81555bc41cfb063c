"""Error kinds raised by the signal-processing core.

All numerical errors derive from :class:`CoilSignalError` and from
``ValueError`` so that callers catching ``ValueError`` (the convention used by
the readers and validators) keep working.

File access failures are not wrapped: they surface as the built-in
``FileNotFoundError`` / ``OSError`` with the offending path in the message.
"""

from __future__ import annotations


class CoilSignalError(Exception):
    """Base class for all analysis errors."""


class InsufficientDataError(CoilSignalError, ValueError):
    """Buffer too short for stacking or resampling."""


class DegenerateSignalError(CoilSignalError, ValueError):
    """Signal has no variation around its mean."""


class SingularSystemError(CoilSignalError, ValueError):
    """Zero (or non-finite) pivot met while solving the FIR normal equations.

    Increasing the regularization strength is the documented mitigation.
    """

    def __init__(self, message: str, *, row: int | None = None, pivot: float | None = None) -> None:
        super().__init__(message)
        self.row = row
        self.pivot = pivot


class EmptyInputError(CoilSignalError, ValueError):
    """Zero-length input passed to spectrum analysis."""


__all__ = [
    "CoilSignalError",
    "InsufficientDataError",
    "DegenerateSignalError",
    "SingularSystemError",
    "EmptyInputError",
]
