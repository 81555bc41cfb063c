"""Analysis configuration -- everything one FIR request depends on.

An AnalysisConfig groups every parameter that affects the FIR design output
into one frozen dataclass.  It can be:

- Constructed directly or from a request dict (``from_dict``)
- Overridden field-by-field via ``dataclasses.replace()``
- Serialized to a dict for JSON provenance (``to_dict``)
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping

# Fixed analysis constants.
DEFAULT_N_SAMPLES = 2048
DEFAULT_READ_CYCLES = 10
DEFAULT_REGULARIZATION = 0.01
DEFAULT_FFT_SIZE = 65536
DEFAULT_FFT_SAMPLE_RATE_HZ = 51200.0
MIN_MAGNITUDE_DB = -120.0
DEFAULT_TARGET_RESOLUTION = 2000  # points per screen width
SAMPLE_WIDTH_BYTES = 4


@dataclass(frozen=True)
class AnalysisConfig:
    """Frozen configuration for one FIR design request.

    Required fields
    ---------------
    file_path : str
        Recording file (flat little-endian float32, no header).
    coil_name : str
        Coil / channel identifier, carried through to exports.
    sample_rate_hz : float
        Acquisition sample rate, > 0.
    base_frequency_hz : float
        Fundamental of the periodic excitation, > 0.

    Optional fields
    ---------------
    regularization : float
        Ridge strength relative to the mean diagonal of ``A^T A`` (>= 0).
    n_samples : int
        Analysis resolution of the stacked cycle (>= 2).
    read_cycles : int
        How many fundamental cycles to read from the start of the file.
    """

    file_path: str
    coil_name: str
    sample_rate_hz: float
    base_frequency_hz: float

    regularization: float = DEFAULT_REGULARIZATION
    n_samples: int = DEFAULT_N_SAMPLES
    read_cycles: int = DEFAULT_READ_CYCLES

    def __post_init__(self) -> None:
        if not (math.isfinite(self.sample_rate_hz) and self.sample_rate_hz > 0):
            raise ValueError(f"sample_rate_hz must be > 0, got {self.sample_rate_hz}")
        if not (math.isfinite(self.base_frequency_hz) and self.base_frequency_hz > 0):
            raise ValueError(f"base_frequency_hz must be > 0, got {self.base_frequency_hz}")
        if not (math.isfinite(self.regularization) and self.regularization >= 0):
            raise ValueError(f"regularization must be >= 0, got {self.regularization}")
        if int(self.n_samples) < 2:
            raise ValueError(f"n_samples must be >= 2, got {self.n_samples}")
        if int(self.read_cycles) < 1:
            raise ValueError(f"read_cycles must be >= 1, got {self.read_cycles}")

    @property
    def samples_per_cycle(self) -> int:
        return int(self.sample_rate_hz / self.base_frequency_hz)

    @property
    def samples_to_read(self) -> int:
        """Size of the partial read: ``read_cycles`` fundamental periods."""
        return self.samples_per_cycle * int(self.read_cycles)

    @property
    def results_dir(self) -> Path:
        """Default export directory, next to the recording."""
        return Path(self.file_path).expanduser().parent / "fir_results"

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-friendly dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> AnalysisConfig:
        """Reconstruct from a dict.

        Accepts both the field names and the camelCase keys used by the
        request boundary (``filePath``, ``coilName``, ``sampleRate``,
        ``baseFrequency``, ``stabilization``).  Unknown keys are ignored.
        """
        aliases = {
            "filePath": "file_path",
            "coilName": "coil_name",
            "sampleRate": "sample_rate_hz",
            "baseFrequency": "base_frequency_hz",
            "stabilization": "regularization",
        }
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in d.items():
            name = aliases.get(key, key)
            if name in known:
                kwargs[name] = value

        for name in ("sample_rate_hz", "base_frequency_hz", "regularization"):
            if name in kwargs:
                kwargs[name] = float(kwargs[name])
        for name in ("n_samples", "read_cycles"):
            if name in kwargs:
                kwargs[name] = int(kwargs[name])
        if "file_path" in kwargs:
            kwargs["file_path"] = str(kwargs["file_path"])
        kwargs.setdefault("coil_name", "")
        return cls(**kwargs)
