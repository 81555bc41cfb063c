from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

import numpy as np

from coil_signal_analyzer.models.config import SAMPLE_WIDTH_BYTES
from coil_signal_analyzer.models.frames import SampleWindow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SampleStoreConfig:
    """
    Reader configuration for flat binary recordings.

    dtype:
      Sample dtype on disk (little-endian float32, no header).
    chunk_samples:
      Samples per chunk when a whole file is read in pieces.
    pool_size:
      Number of pre-allocated chunk buffers kept by the pool.
    """
    dtype: np.dtype = np.dtype("<f4")
    chunk_samples: int = 1 << 20
    pool_size: int = 2

    def __post_init__(self) -> None:
        if int(self.dtype.itemsize) != SAMPLE_WIDTH_BYTES:
            raise ValueError(f"dtype must be {SAMPLE_WIDTH_BYTES} bytes wide, got {self.dtype}")
        if int(self.chunk_samples) <= 0:
            raise ValueError("chunk_samples must be > 0")
        if int(self.pool_size) <= 0:
            raise ValueError("pool_size must be > 0")


class BufferPool:
    """
    Fixed set of byte buffers reused across chunked reads.

    Buffers are handed out by :meth:`acquire` as a context manager and are
    always returned on exit, including when the body raises.  Each buffer is
    zero-filled on checkout so nothing from a previous read leaks through.
    When the pool is empty a temporary buffer is allocated and dropped on return.
    """

    def __init__(self, n_bytes: int, size: int = 2) -> None:
        if n_bytes <= 0:
            raise ValueError("n_bytes must be > 0")
        self.n_bytes = int(n_bytes)
        self.capacity = int(size)
        self._free: List[np.ndarray] = [np.empty(self.n_bytes, dtype=np.uint8) for _ in range(self.capacity)]
        self._lock = threading.Lock()

    @property
    def available(self) -> int:
        with self._lock:
            return len(self._free)

    @contextmanager
    def acquire(self) -> Iterator[np.ndarray]:
        with self._lock:
            buf = self._free.pop() if self._free else None
        if buf is None:
            logger.debug("buffer pool exhausted; allocating a temporary %d-byte buffer", self.n_bytes)
            buf = np.empty(self.n_bytes, dtype=np.uint8)
            pooled = False
        else:
            pooled = True
        buf.fill(0)
        try:
            yield buf
        finally:
            if pooled:
                with self._lock:
                    self._free.append(buf)


class SampleStore:
    """
    Reader for single-channel recordings stored as consecutive float32 samples.

    HARD REQUIREMENTS:
      - sample count is always file size // 4; trailing partial bytes are ignored
      - reads never go past end-of-file; a short read shrinks the buffer
      - the file is opened read-only and closed before every call returns
    """

    def __init__(self, config: Optional[SampleStoreConfig] = None, pool: Optional[BufferPool] = None):
        self.config = config or SampleStoreConfig()
        self.pool = pool or BufferPool(
            int(self.config.chunk_samples) * SAMPLE_WIDTH_BYTES,
            size=int(self.config.pool_size),
        )

    @staticmethod
    def _resolve(file_path: str | Path) -> Path:
        path = Path(file_path).expanduser().resolve()
        if not path.exists():
            raise FileNotFoundError(str(path))
        return path

    def file_sample_count(self, file_path: str | Path) -> int:
        path = self._resolve(file_path)
        return int(path.stat().st_size) // SAMPLE_WIDTH_BYTES

    def total_sample_count(self, file_paths: Sequence[str | Path]) -> int:
        """Sum of :meth:`file_sample_count` over several recordings."""
        return sum(self.file_sample_count(p) for p in file_paths)

    def read_window(self, file_path: str | Path, sample_offset: int, sample_count: int) -> np.ndarray:
        """
        Read up to ``sample_count`` samples starting at ``sample_offset``.

        Returns a float64 array; it is shorter than requested when the file
        ends first, and empty when the offset is at or past end-of-file.
        """
        offset = int(sample_offset)
        count = int(sample_count)
        if offset < 0:
            raise ValueError(f"sample_offset must be >= 0, got {offset}")
        if count < 0:
            raise ValueError(f"sample_count must be >= 0, got {count}")

        path = self._resolve(file_path)
        width = SAMPLE_WIDTH_BYTES
        with path.open("rb") as fh:
            fh.seek(offset * width)
            raw = fh.read(count * width)

        n = len(raw) // width
        if n < count:
            logger.debug("short read from %s: requested %d samples at %d, got %d", path.name, count, offset, n)
        return np.frombuffer(raw[: n * width], dtype=self.config.dtype).astype(np.float64)

    def read_all(self, file_path: str | Path) -> np.ndarray:
        """Read every complete sample of a recording, chunk by chunk."""
        chunks = list(self.iter_chunks(file_path))
        if not chunks:
            return np.empty(0, dtype=np.float64)
        return np.concatenate(chunks)

    def iter_chunks(self, file_path: str | Path, chunk_samples: Optional[int] = None) -> Iterator[np.ndarray]:
        """
        Yield consecutive float64 chunks of a recording.

        Raw bytes go through a pooled buffer; each yielded array is an
        independent copy, so the buffer can be reused for the next chunk.
        """
        n_chunk = int(chunk_samples or self.config.chunk_samples)
        if n_chunk <= 0:
            raise ValueError("chunk_samples must be > 0")
        width = SAMPLE_WIDTH_BYTES
        n_bytes = n_chunk * width
        if n_bytes > self.pool.n_bytes:
            raise ValueError(f"chunk of {n_bytes} bytes exceeds pool buffer size {self.pool.n_bytes}")

        path = self._resolve(file_path)
        with path.open("rb") as fh, self.pool.acquire() as buf:
            view = memoryview(buf)[:n_bytes]
            carry = 0
            while True:
                got = fh.readinto(view[carry:])
                if not got:
                    break
                filled = carry + got
                n = filled // width
                if n:
                    yield buf[: n * width].view(self.config.dtype).astype(np.float64)
                # Keep a partial trailing sample for the next read.
                carry = filled - n * width
                if carry:
                    buf[:carry] = buf[n * width : filled]

    def read_window_indices(self, file_path: str | Path, start_index: int, end_index: int) -> SampleWindow:
        """
        Read samples ``[start_index, end_index)`` for display.

        Policy (index clamping):
          - negative start clamps to 0
          - end <= 0 or past end-of-file clamps to the file length
          - start >= end after clamping raises ValueError
        """
        path = self._resolve(file_path)
        total = self.file_sample_count(path)

        start = max(0, int(start_index))
        end = int(end_index)
        if end <= 0 or end > total:
            end = total
        if start >= end:
            raise ValueError(f"invalid index range: start={start}, end={end} (file has {total} samples)")

        values = self.read_window(path, start, end - start)
        warnings: List[str] = []
        if values.size < end - start:
            warnings.append(f"short read: requested {end - start} samples, got {values.size}")
        times = np.arange(start, start + values.size, dtype=np.float64)
        return SampleWindow(
            source_path=path,
            start_index=start,
            times=times,
            values=values,
            warnings=tuple(warnings),
        )
