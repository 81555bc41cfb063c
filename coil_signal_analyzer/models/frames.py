from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

import numpy as np


@dataclass(frozen=True)
class SampleWindow:
    """
    In-memory representation of one contiguous window of a recording file.

    Notes
    - 'times' is the absolute sample index of each value (float64); no time is
      synthesized from a sample rate at this layer.
    - 'values' are the float32 samples widened to float64.
    - A short read at end-of-file shrinks both arrays and adds a warning.
    """
    source_path: Path
    start_index: int
    times: np.ndarray
    values: np.ndarray
    warnings: Tuple[str, ...] = ()

    @property
    def n_samples(self) -> int:
        return int(self.values.size)

    @property
    def end_index(self) -> int:
        """Exclusive end index of the samples actually read."""
        return int(self.start_index + self.values.size)
